"""
FastAPI dependencies - Dependency injection factories.

This module wires infrastructure adapters into the domain service and
provides Depends() factories for injecting it into routes.
"""

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader
from psycopg_pool import ConnectionPool

from src.adapters.directory.postgres import PostgresAppDirectory, PostgresDeveloperDirectory
from src.adapters.evidence import (
    DnsTxtStrategy,
    FileUploadStrategy,
    ManualReviewStrategy,
    MetaTagStrategy,
)
from src.adapters.notify.console import ConsoleAdminNotifier
from src.adapters.repository.postgres import PostgresProofRepository
from src.config.settings import Settings
from src.domain.instructions import InstructionRenderer
from src.domain.ports import EvidenceStrategy, VerificationType
from src.domain.tokens import TokenGenerator
from src.domain.verification import VerificationService


def build_strategies(settings: Settings) -> dict[VerificationType, EvidenceStrategy]:
    """Map every verification type to its evidence check."""
    timeout_seconds = settings.check_timeout_ms / 1000
    return {
        VerificationType.DNS_TXT: DnsTxtStrategy(
            label=settings.dns_label,
            timeout_seconds=timeout_seconds,
        ),
        VerificationType.META_TAG: MetaTagStrategy(
            meta_name=settings.meta_name,
            legacy_names=tuple(settings.legacy_meta_names),
            user_agent=settings.user_agent,
            timeout_seconds=timeout_seconds,
        ),
        VerificationType.FILE_UPLOAD: FileUploadStrategy(
            file_path=settings.file_path,
            user_agent=settings.user_agent,
            timeout_seconds=timeout_seconds,
        ),
        VerificationType.MANUAL_REVIEW: ManualReviewStrategy(),
    }


def build_verification_service(pool: ConnectionPool, settings: Settings) -> VerificationService:
    """
    Create the verification service with injected dependencies.

    Called once during app startup; the result is stored in app.state
    and shared by all requests.
    """
    return VerificationService(
        repository=PostgresProofRepository(pool),
        developers=PostgresDeveloperDirectory(pool),
        apps=PostgresAppDirectory(pool),
        notifier=ConsoleAdminNotifier(),
        strategies=build_strategies(settings),
        tokens=TokenGenerator(prefix=settings.token_prefix, ttl_days=settings.token_ttl_days),
        renderer=InstructionRenderer(
            dns_label=settings.dns_label,
            file_path=settings.file_path,
            meta_name=settings.meta_name,
        ),
        max_retries=settings.max_retries,
    )


def get_verification_service(request: Request) -> VerificationService:
    """
    Get the verification service from app state.

    The service is created during app lifespan startup.
    """
    return request.app.state.verification_service


# Developer identity header for OpenAPI documentation. Authentication
# happens upstream; the gateway forwards the authenticated developer id.
developer_id_header = APIKeyHeader(name="X-Developer-Id", description="Authenticated developer id")


def get_developer_id(developer_id: str = Depends(developer_id_header)) -> str:
    """
    Extract the calling developer's id from the X-Developer-Id header.

    APIKeyHeader rejects requests without the header.
    """
    return developer_id.strip()
