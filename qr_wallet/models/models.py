from sqlalchemy import JSON, Column, DateTime, Enum as SQLEnum, Integer, String, UniqueConstraint
from datetime import datetime, timezone
import enum
from ..db import Base


def _utcnow():
    return datetime.now(timezone.utc)


class RecordKind(str, enum.Enum):
    USER = "USER"
    WALLET = "WALLET"
    TRANSACTION_LIST = "TRANSACTION_LIST"
    PENDING_LIST = "PENDING_LIST"
    SETTING = "SETTING"


# bump when the payload layout of a kind changes; older rows then read as absent
SCHEMA_VERSIONS = {
    RecordKind.USER: 1,
    RecordKind.WALLET: 1,
    RecordKind.TRANSACTION_LIST: 1,
    RecordKind.PENDING_LIST: 1,
    RecordKind.SETTING: 1,
}


class CacheEntry(Base):
    __tablename__ = "cache_entries"
    id = Column(Integer, primary_key=True, index=True)
    box = Column(String(64), nullable=False)
    key = Column(String(128), nullable=False)
    kind = Column(SQLEnum(RecordKind), nullable=False)
    schema_version = Column(Integer, nullable=False)
    payload = Column(JSON, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint("box", "key", name="uq_box_key"),
    )
