"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from enum import Enum
from typing import TYPE_CHECKING, NamedTuple, Protocol

if TYPE_CHECKING:
    from .models import ProofPatch, VerificationProof


class VerificationType(str, Enum):
    """Supported proof methods for domain ownership."""

    DNS_TXT = "DNS_TXT"
    META_TAG = "META_TAG"
    FILE_UPLOAD = "FILE_UPLOAD"
    MANUAL_REVIEW = "MANUAL_REVIEW"


class ProofStatus(str, Enum):
    """
    Proof lifecycle states.

    State Transitions (forward-only):
    - PENDING -> VERIFIED (evidence matched the token)
    - PENDING -> FAILED   (retry limit reached)
    - PENDING -> EXPIRED  (verify attempted after expires_at)

    Terminal States:
    - VERIFIED, FAILED, EXPIRED: no further transitions. A fresh
      initiate() is the only way to try again.

    Note: Forward-only transitions are enforced by compare-and-set
    updates at the repository level.
    """

    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    FAILED = "FAILED"
    EXPIRED = "EXPIRED"

    @property
    def is_terminal(self) -> bool:
        return self is not ProofStatus.PENDING


class VerifyResult(Enum):
    """
    Result of a verification attempt.

    Used by VerificationService.verify() to tell callers exactly why
    an attempt did or did not succeed.
    """

    VERIFIED = "verified"
    ALREADY_VERIFIED = "already_verified"
    EXPIRED = "expired"
    RETRIES_EXHAUSTED = "retries_exhausted"
    PENDING_MANUAL_REVIEW = "pending_manual_review"
    CHECK_FAILED = "check_failed"


class CheckResult(NamedTuple):
    """Outcome of a single evidence check."""

    success: bool
    error: str | None = None


class ProofRepository(Protocol):
    """Port interface for proof persistence."""

    def create(self, proof: "VerificationProof") -> None:
        """
        Insert a new proof.

        Raises:
            ProofConflict: If a proof with the same id already exists
        """
        ...

    def get(self, verification_id: str) -> "VerificationProof":
        """
        Load a proof by id.

        Raises:
            ProofNotFound: If no proof has this id
        """
        ...

    def update(
        self,
        verification_id: str,
        patch: "ProofPatch",
        *,
        expected_status: ProofStatus,
        expected_retry_count: int,
    ) -> "VerificationProof | None":
        """
        Atomically apply a patch if the proof is still in the expected state.

        The write happens only when the stored status and retry_count equal
        the expected values, so two concurrent verify attempts on the same
        proof cannot both apply.

        Returns:
            The updated proof, or None if the proof changed (or vanished)
            since it was read
        """
        ...

    def list_by_developer(self, developer_id: str) -> "list[VerificationProof]":
        """Return all proofs owned by developer_id, newest first."""
        ...

    def delete(self, verification_id: str, developer_id: str) -> bool:
        """
        Delete a proof owned by developer_id.

        Returns:
            True if a proof was deleted, False if it does not exist
            or belongs to someone else
        """
        ...


class EvidenceStrategy(Protocol):
    """Port interface for a type-specific ownership check."""

    def check(self, domain: str, token: str) -> CheckResult:
        """
        Fetch external evidence for domain and compare it to token.

        Must never raise: network and parsing failures are reported
        as CheckResult(False, reason).
        """
        ...


class DeveloperDirectory(Protocol):
    """Port interface for the platform's developer records."""

    def exists(self, developer_id: str) -> bool: ...

    def mark_domain_verified(self, developer_id: str, method: str) -> None: ...


class AppDirectory(Protocol):
    """Port interface for the platform's app records."""

    def exists(self, app_id: str, developer_id: str) -> bool:
        """True only if the app exists and belongs to developer_id."""
        ...


class AdminNotifier(Protocol):
    """Port interface for human-review notifications."""

    def notify_ready_for_review(self, developer_id: str) -> None: ...
