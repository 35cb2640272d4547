"""Base SQLAlchemy declarative base for all models"""

from datetime import datetime, timezone

from pgvector.sqlalchemy import Vector
from sqlalchemy.orm import declarative_base
from sqlalchemy import TypeDecorator, JSON

EMBEDDING_DIMENSIONS = 1536


class PortableVector(TypeDecorator):
    """Embedding vector type that works with both PostgreSQL (pgvector) and SQLite (JSON).

    Uses pgvector VECTOR on PostgreSQL for native storage and cosine operators,
    falls back to a JSON float array on SQLite for testing compatibility.
    Values are always returned as plain lists of floats.
    """
    impl = JSON(none_as_null=True)
    cache_ok = True

    def __init__(self, dimensions: int = EMBEDDING_DIMENSIONS, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.dimensions = dimensions

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(Vector(self.dimensions))
        else:
            return dialect.type_descriptor(JSON(none_as_null=True))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return [float(x) for x in value]

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return [float(x) for x in value]


Base = declarative_base()


def utcnow() -> datetime:
    """Timezone-aware current UTC timestamp for model defaults."""
    return datetime.now(timezone.utc)
