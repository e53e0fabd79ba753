"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock
- Proof factories
- In-memory service wiring with mocked collaborators
- PostgreSQL connection pool (tests skip when the database is unreachable)
"""

import uuid
from collections.abc import Callable, Generator
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.memory import InMemoryProofRepository
from src.adapters.repository.postgres import run_migrations
from src.config.settings import get_settings
from src.domain.models import VerificationProof
from src.domain.ports import CheckResult, ProofStatus, VerificationType
from src.domain.verification import VerificationService

START = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def build_proof(**overrides) -> VerificationProof:
    """Create a PENDING DNS_TXT proof for dev-1 / example.com unless overridden."""
    values = {
        "id": str(uuid.uuid4()),
        "developer_id": "dev-1",
        "domain": "example.com",
        "verification_type": VerificationType.DNS_TXT,
        "verification_token": f"rapid-verify-{uuid.uuid4().hex}",
        "status": ProofStatus.PENDING,
        "expires_at": START + timedelta(days=7),
        "created_at": START,
        "updated_at": START,
    }
    values.update(overrides)
    return VerificationProof(**values)


@pytest.fixture
def make_proof() -> Callable[..., VerificationProof]:
    return build_proof


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def strategies() -> dict[VerificationType, Mock]:
    """One mock strategy per type, all succeeding by default."""
    return {
        verification_type: Mock(**{"check.return_value": CheckResult(True)})
        for verification_type in VerificationType
    }


@pytest.fixture
def developers() -> Mock:
    directory = Mock()
    directory.exists.return_value = True
    return directory


@pytest.fixture
def apps() -> Mock:
    directory = Mock()
    directory.exists.return_value = True
    return directory


@pytest.fixture
def notifier() -> Mock:
    return Mock()


@pytest.fixture
def memory_repository() -> InMemoryProofRepository:
    return InMemoryProofRepository()


@pytest.fixture
def service(
    memory_repository: InMemoryProofRepository,
    developers: Mock,
    apps: Mock,
    notifier: Mock,
    strategies: dict[VerificationType, Mock],
    clock: FakeClock,
) -> VerificationService:
    """Verification service over the in-memory store with mocked collaborators."""
    return VerificationService(
        repository=memory_repository,
        developers=developers,
        apps=apps,
        notifier=notifier,
        strategies=strategies,
        clock=clock,
    )


@pytest.fixture(scope="session")
def pg_pool() -> Generator[ConnectionPool, None, None]:
    """Create a migrated connection pool, or skip if PostgreSQL is not running."""
    settings = get_settings()
    try:
        psycopg.connect(settings.database_url, connect_timeout=2).close()
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL unavailable: {e}")

    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=10,
        open=True,
    )
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def clean_database(pg_pool: ConnectionPool) -> Generator[None, None, None]:
    """Empty all tables before each database test."""
    with pg_pool.connection() as conn:
        conn.execute("DELETE FROM verification_proofs")
        conn.execute("DELETE FROM apps")
        conn.execute("DELETE FROM developers")
        conn.commit()
    yield


@pytest.fixture
def seed_developer(pg_pool: ConnectionPool, clean_database: None) -> Callable[..., str]:
    """Insert a developer row (and optionally an app) and return its id."""

    def seed(developer_id: str = "dev-1", app_ids: tuple[str, ...] = ()) -> str:
        with pg_pool.connection() as conn:
            conn.execute("INSERT INTO developers (id) VALUES (%s)", (developer_id,))
            for app_id in app_ids:
                conn.execute(
                    "INSERT INTO apps (id, developer_id) VALUES (%s, %s)",
                    (app_id, developer_id),
                )
            conn.commit()
        return developer_id

    return seed
