# server/tests/conftest.py
"""
Conftest *global* pour toute la suite de tests.

Points clés :
- Pose les ENV *avant* tout import reminder_engine.* (Settings() est instancié à l'import) :
  DATABASE_URL SQLite in-memory, boucles de fond désactivées, backoff nul.
- Pour les tests @unit :
  - Active Celery en mode "eager" (exécution in-process).
  - Monte une DB SQLite in-memory partagée + Base.create_all.
  - Patch de la pile DB : le moteur et la fabrique de sessions du module `session`
    (open_session/get_sync_session/get_db passent tous par eux).
  - Purge les tables après chaque test.
- Fournit un TestClient FastAPI avec un hub temps réel neuf par test.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("RUN_BACKGROUND_LOOPS", "false")
os.environ.setdefault("DELIVERY_BACKOFF_BASE_SECONDS", "0")

import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


# ============================================================================
# Helpers
# ============================================================================
def _is_unit(request: pytest.FixtureRequest) -> bool:
    """True si le test courant est marqué @pytest.mark.unit."""
    return request.node.get_closest_marker("unit") is not None


# ============================================================================
# UNIT-ONLY: Celery en mode "eager" (tâches exécutées in-process)
# ============================================================================
@pytest.fixture(autouse=True)
def celery_eager(request):
    """
    ⚠️ Comme c'est un fixture générateur, il DOIT toujours 'yield', même hors unit.
    """
    if not _is_unit(request):
        yield
        return

    from reminder_engine.workers.celery_app import celery

    prev_always = celery.conf.task_always_eager
    prev_propag = celery.conf.task_eager_propagates
    celery.conf.task_always_eager = True
    celery.conf.task_eager_propagates = True
    try:
        yield
    finally:
        celery.conf.task_always_eager = prev_always
        celery.conf.task_eager_propagates = prev_propag


# ============================================================================
# UNIT-ONLY: DB SQLite in-memory partagée + Base.metadata.create_all
# ============================================================================
@pytest.fixture(scope="session")
def _sqlite_engine_unit():
    """
    Engine in-memory **partagé** entre connexions (StaticPool + check_same_thread=False)
    + activation des contraintes FK sur chaque connexion.
    """
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ARG001
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    # l'import de `base` enregistre toutes les tables (import * des modèles)
    from reminder_engine.infrastructure.persistence.database import base as db_base

    db_base.Base.metadata.create_all(engine)
    return engine


@pytest.fixture(scope="session")
def _Session_unit(_sqlite_engine_unit):
    return sessionmaker(
        bind=_sqlite_engine_unit,
        future=True,
        autoflush=True,
        expire_on_commit=False,
    )


@pytest.fixture
def Session(request, _Session_unit):
    """
    sessionmaker à utiliser comme `with Session() as s:` dans les tests unitaires.
    Skippé s'il est injecté dans un test non marqué @unit.
    """
    if not _is_unit(request):
        pytest.skip("Session fixture is only available for unit tests")
    return _Session_unit


@pytest.fixture(autouse=True)
def patch_db_stack_for_unit(request, monkeypatch, _Session_unit, _sqlite_engine_unit):
    """
    Rend impossible l'usage de Postgres pendant les tests unitaires : le module
    `session` résout moteur et fabrique à chaque appel via ses globales.
    """
    if not _is_unit(request):
        return

    from reminder_engine.infrastructure.persistence.database import session as sess_mod

    monkeypatch.setattr(sess_mod, "_engine", _sqlite_engine_unit)
    monkeypatch.setattr(sess_mod, "_SessionLocal", _Session_unit)


@pytest.fixture(autouse=True)
def _clear_db_between_unit_tests(request, _Session_unit):
    """
    Après chaque test unitaire, on supprime le contenu de toutes les tables.
    ⚠️ Générateur : doit 'yield' aussi hors unit.
    """
    if not _is_unit(request):
        yield
        return

    yield
    from reminder_engine.infrastructure.persistence.database import base as db_base

    with _Session_unit() as s:
        for table in reversed(db_base.Base.metadata.sorted_tables):
            s.execute(table.delete())
        s.commit()


# ============================================================================
# Fixtures communes
# ============================================================================
@pytest.fixture
def now() -> datetime:
    """Instant de référence fixe (milieu de journée UTC)."""
    return datetime(2030, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def auth_headers(user_id) -> dict:
    return {"X-User-Id": str(user_id)}


@pytest.fixture
def client(request):
    """
    TestClient FastAPI (startup/shutdown exécutés) avec un hub temps réel neuf.
    """
    from fastapi.testclient import TestClient

    from reminder_engine.application.services.realtime_hub import RealtimeHub
    from reminder_engine.main import app

    app.state.realtime_hub = RealtimeHub()
    with TestClient(app) as c:
        yield c
    app.state.realtime_hub = None


class FakeTransport:
    """Transport en mémoire : enregistre les envois, peut échouer N fois."""

    def __init__(self, *, fail_times: int = 0, fail_close: bool = False):
        self.sent: list[dict] = []
        self.closed: tuple[int, str] | None = None
        self.fail_times = fail_times
        self.fail_close = fail_close
        self.attempts = 0

    async def send_json(self, message: dict) -> None:
        self.attempts += 1
        if self.fail_times > 0:
            self.fail_times -= 1
            raise ConnectionError("socket broken")
        self.sent.append(message)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if self.fail_close:
            raise RuntimeError("already closed")
        self.closed = (code, reason)

    def of_type(self, kind: str) -> list[dict]:
        return [m for m in self.sent if m.get("type") == kind]


@pytest.fixture
def fake_transport_factory():
    return FakeTransport
