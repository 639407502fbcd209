"""Column types shared by all models.

JSON columns use JSONB on PostgreSQL and plain JSON elsewhere (SQLite in tests).
"""
from sqlalchemy import JSON, Uuid
from sqlalchemy.dialects.postgresql import JSONB

JSONType = JSON().with_variant(JSONB(), "postgresql")
UUIDType = Uuid(as_uuid=True)
