from __future__ import annotations
"""server/reminder_engine/core/config.py
~~~~~~~~~~~~~~~~~~~~~~~~
Paramètres (pydantic-settings).
"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql+psycopg://postgres:postgres@db:5432/reminders"
    DB_CONNECT_TIMEOUT: int = 5
    REDIS_URL: str = "redis://redis:6379/0"
    CORS_ALLOW_ORIGINS: Optional[str] = None

    # Calendrier : fuseau "local" de référence (same_day_morning, purge nocturne)
    REMINDER_TIMEZONE: str = "UTC"
    SAME_DAY_MORNING_HOUR: int = 9

    # Paliers de calcul (constantes empiriques, gardées configurables)
    NEAR_OFFSET_FRACTION: float = 0.5
    IMMINENT_MINUTES: int = 30
    EMERGENCY_GRACE_SECONDS: int = 10

    # Boucle de dispatch
    DISPATCH_INTERVAL_SECONDS: float = 60.0
    DISPATCH_ACCEPTANCE_BUFFER_SECONDS: int = 120
    DISPATCH_LOOKAHEAD_SECONDS: int = 300
    DISPATCH_BATCH_SIZE: int = 10

    # Registre de connexions / livraison temps réel
    HEARTBEAT_INTERVAL_SECONDS: float = 30.0
    DELIVERY_MAX_ATTEMPTS: int = 3
    DELIVERY_BACKOFF_BASE_SECONDS: float = 1.0
    REPLAY_LIMIT: int = 10

    # Rétention
    RETENTION_DAYS: int = 30
    RETENTION_READ_DAYS: int = 7
    RETENTION_HOUR: int = 2

    HEALTH_LOG_MINUTES: int = 15
    RUN_BACKGROUND_LOOPS: bool = True

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=True,
    )


settings = Settings()
