from .models import SCHEMA_VERSIONS, CacheEntry, RecordKind
