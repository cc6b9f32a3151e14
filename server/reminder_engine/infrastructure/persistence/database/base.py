from __future__ import annotations
"""
server/reminder_engine/infrastructure/persistence/database/base.py

Base ORM SQLAlchemy 2.x.

Le `from ...models import *` ci-dessous est volontaire : il “remplit”
Base.metadata avec TOUTES les tables. Ainsi `Base.metadata.create_all(bind=engine)`
(p.ex. en SQLite pendant les tests) crée le schéma complet.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base declarative pour tous les modèles."""
    pass


# Effet de bord voulu : en important ce package on enregistre toutes les tables.
from reminder_engine.infrastructure.persistence.database.models import *  # noqa: F403,F401,E402

__all__ = ["Base"]
