"""
Shared fixtures for adversarial tests.

Provides a PostgreSQL-backed VerificationService with controllable
evidence strategies for race condition and retry exhaustion tests.
"""

from collections.abc import Callable
from unittest.mock import Mock

import pytest
from psycopg_pool import ConnectionPool

from src.adapters.directory.postgres import PostgresAppDirectory, PostgresDeveloperDirectory
from src.adapters.repository.postgres import PostgresProofRepository
from src.domain.ports import CheckResult, VerificationType
from src.domain.verification import VerificationService


@pytest.fixture
def repository(pg_pool: ConnectionPool, seed_developer: Callable[..., str]) -> PostgresProofRepository:
    """Repository over a clean database with developers dev-1 and dev-2."""
    seed_developer("dev-1")
    seed_developer("dev-2")
    return PostgresProofRepository(pg_pool)


@pytest.fixture
def attack_strategies() -> dict[VerificationType, Mock]:
    return {
        verification_type: Mock(**{"check.return_value": CheckResult(True)})
        for verification_type in VerificationType
    }


@pytest.fixture
def pg_notifier() -> Mock:
    return Mock()


@pytest.fixture
def pg_service(
    pg_pool: ConnectionPool,
    repository: PostgresProofRepository,
    attack_strategies: dict[VerificationType, Mock],
    pg_notifier: Mock,
) -> VerificationService:
    return VerificationService(
        repository=repository,
        developers=PostgresDeveloperDirectory(pg_pool),
        apps=PostgresAppDirectory(pg_pool),
        notifier=pg_notifier,
        strategies=attack_strategies,
    )
