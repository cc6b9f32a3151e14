from __future__ import annotations
"""server/reminder_engine/infrastructure/persistence/database/models/types.py
~~~~~~~~~~~~~~~~~~~~~~~~
Types de colonnes portables (Postgres en prod, SQLite en tests).
"""

import uuid
from datetime import datetime, timezone

import sqlalchemy as sa


class JSONPortable(sa.types.TypeDecorator):
    """JSONB sur Postgres, JSON ailleurs."""
    impl = sa.JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import JSONB
            return dialect.type_descriptor(JSONB(astext_type=sa.Text()))
        return dialect.type_descriptor(sa.JSON())


class UUIDPortable(sa.types.TypeDecorator):
    """UUID natif sur Postgres, VARCHAR(36) ailleurs (toujours uuid.UUID côté Python)."""
    impl = sa.String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import UUID as PGUUID
            return dialect.type_descriptor(PGUUID(as_uuid=True))
        return dialect.type_descriptor(sa.String(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, uuid.UUID):
            value = uuid.UUID(str(value))
        return value if dialect.name == "postgresql" else str(value)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))


class TstzPortable(sa.types.TypeDecorator):
    """
    TIMESTAMPTZ sur Postgres, DateTime() ailleurs.
    Hors Postgres on stocke de l'UTC naïf et on le relit en UTC aware,
    pour que les comparaisons (fenêtres de dispatch, purge) restent cohérentes.
    """
    impl = sa.DateTime
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(sa.TIMESTAMP(timezone=True))
        return dialect.type_descriptor(sa.DateTime())

    def process_bind_param(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        return value if dialect.name == "postgresql" else value.replace(tzinfo=None)

    def process_result_value(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
