import re
from datetime import datetime, timezone
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

_FRACTION = re.compile(r"(\.\d{6})\d+")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value, default_now: bool = True):
    """Accept datetimes and ISO strings (with ``Z`` and nanosecond precision)."""
    if value is None or value == "":
        return utcnow() if default_now else None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        text = _FRACTION.sub(r"\1", value.strip())
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text)
    return utcnow() if default_now else None


class CamelModel(BaseModel):
    """Snake-case attributes, camelCase on the wire; instances are immutable."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    @classmethod
    def from_json(cls, data: Dict[str, Any]):
        return cls.model_validate(data)

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def copy_with(self, **changes):
        return self.model_copy(update=changes)
