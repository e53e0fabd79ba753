"""
Domain models - Value objects for proofs and verification outcomes.

Proofs are immutable snapshots. All changes go through
ProofRepository.update() with a ProofPatch, so callers never hold a
long-lived mutable reference to stored state.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .ports import ProofStatus, VerificationType, VerifyResult


@dataclass(frozen=True)
class VerificationProof:
    """A single domain ownership verification attempt."""

    id: str
    developer_id: str
    domain: str
    verification_type: VerificationType
    verification_token: str
    status: ProofStatus
    expires_at: datetime
    created_at: datetime
    updated_at: datetime
    app_id: str | None = None
    retry_count: int = 0
    max_retries: int = 3
    failure_reason: str | None = None
    verification_data: dict[str, Any] | None = None
    verified_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class ProofPatch:
    """
    Changes applied to a proof by a single state transition.

    status and failure_reason are always written (None clears the
    reason). retry_count, verified_at and verification_data are only
    written when set.
    """

    status: ProofStatus
    failure_reason: str | None = None
    retry_count: int | None = None
    verified_at: datetime | None = None
    verification_data: dict[str, Any] | None = None


@dataclass(frozen=True)
class InitiatedVerification:
    """Returned by initiate(): everything the developer needs to set up evidence."""

    verification_id: str
    token: str
    expires_at: datetime
    instructions: str


@dataclass(frozen=True)
class VerificationOutcome:
    """Returned by verify()."""

    result: VerifyResult
    message: str
    status: ProofStatus
    retry_count: int

    @property
    def verified(self) -> bool:
        return self.result in (VerifyResult.VERIFIED, VerifyResult.ALREADY_VERIFIED)
