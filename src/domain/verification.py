"""
Verification domain service - Domain ownership state machine.

This module contains the core business logic for proving that a
developer controls the domain named in a claim.

Proof State Machine (Forward-Only Transitions)
==============================================

States:
- PENDING:  Initial state after initiate() (token issued, awaiting evidence)
- VERIFIED: Terminal state after evidence matched the token
- FAILED:   Terminal state after max_retries failed checks
- EXPIRED:  Terminal state when verify() runs after expires_at

Valid Transitions (forward-only, enforced by compare-and-set updates):
    PENDING -> VERIFIED  (strategy check succeeded)
    PENDING -> FAILED    (failed check reached max_retries)
    PENDING -> EXPIRED   (verify attempted after expires_at)

Invalid Transitions (never allowed):
    VERIFIED -> any      (re-verifying is an idempotent read)
    FAILED -> any
    EXPIRED -> any
    any -> PENDING       (start over with a fresh initiate())

Retry accounting: only a strategy check that actually ran and failed
consumes a retry. Manual review and policy rejections (already
verified, expired, retries exhausted) never do.
"""

import logging
import re
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .exceptions import (
    AppNotFound,
    DeveloperNotFound,
    InvalidDomain,
    InvalidVerificationType,
    ProofNotFound,
)
from .instructions import InstructionRenderer
from .models import InitiatedVerification, ProofPatch, VerificationOutcome, VerificationProof
from .ports import (
    AdminNotifier,
    AppDirectory,
    CheckResult,
    DeveloperDirectory,
    EvidenceStrategy,
    ProofRepository,
    ProofStatus,
    VerificationType,
    VerifyResult,
)
from .tokens import TokenGenerator

logger = logging.getLogger(__name__)

VERIFIED_MESSAGE = "Domain ownership verified successfully"
ALREADY_VERIFIED_MESSAGE = "Domain already verified"
EXPIRED_MESSAGE = "Verification token has expired"
RETRIES_EXHAUSTED_MESSAGE = "Maximum retry attempts exceeded"
MANUAL_REVIEW_MESSAGE = "Manual review is pending. Please wait for admin approval."

_LABEL = r"(?!-)[a-z0-9-]{1,63}(?<!-)"
_TLD = r"(?:[a-z]{2,63}|xn--[a-z0-9-]{1,59})"
_DOMAIN_RE = re.compile(rf"^(?:{_LABEL}\.)+{_TLD}$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class VerificationService:
    """
    Domain service for domain ownership verification.

    Orchestrates the proof lifecycle: input validation, token issue,
    strategy dispatch, retry and expiry policy, and collaborator
    notification. Holds no per-request state; everything lives in the
    repository, so one instance is shared by all requests.
    """

    repository: ProofRepository
    developers: DeveloperDirectory
    apps: AppDirectory
    notifier: AdminNotifier
    strategies: Mapping[VerificationType, EvidenceStrategy]
    tokens: TokenGenerator = field(default_factory=TokenGenerator)
    renderer: InstructionRenderer = field(default_factory=InstructionRenderer)
    max_retries: int = 3
    clock: Callable[[], datetime] = _utcnow

    def initiate(
        self,
        developer_id: str,
        domain: str,
        verification_type: VerificationType | str,
        app_id: str | None = None,
    ) -> InitiatedVerification:
        """
        Start a new verification for a developer's domain.

        Args:
            developer_id: Owning developer
            domain: Claimed hostname (will be normalized)
            verification_type: One of the VerificationType values
            app_id: Optional app the claim is for

        Returns:
            Token, expiry and setup instructions for the new PENDING proof

        Raises:
            DeveloperNotFound: If the developer does not exist
            AppNotFound: If app_id does not exist or belongs to someone else
            InvalidDomain: If domain is not a valid hostname
            InvalidVerificationType: If verification_type is unsupported
        """
        if not self.developers.exists(developer_id):
            raise DeveloperNotFound(developer_id)

        if app_id is not None and not self.apps.exists(app_id, developer_id):
            raise AppNotFound(app_id)

        normalized_domain = self._normalize_domain(domain)
        method = self._parse_verification_type(verification_type)

        now = self.clock()
        token = self.tokens.generate()
        proof = VerificationProof(
            id=str(uuid.uuid4()),
            developer_id=developer_id,
            app_id=app_id,
            domain=normalized_domain,
            verification_type=method,
            verification_token=token,
            status=ProofStatus.PENDING,
            retry_count=0,
            max_retries=self.max_retries,
            expires_at=self.tokens.expiry_for(now),
            created_at=now,
            updated_at=now,
        )
        self.repository.create(proof)

        logger.info(
            "Verification initiated: id=%s developer=%s domain=%s type=%s",
            proof.id,
            developer_id,
            normalized_domain,
            method.value,
        )

        return InitiatedVerification(
            verification_id=proof.id,
            token=token,
            expires_at=proof.expires_at,
            instructions=self.renderer.render(method, token, normalized_domain),
        )

    def verify(self, verification_id: str, developer_id: str | None = None) -> VerificationOutcome:
        """
        Check the external evidence for a proof and advance its state.

        Policy checks (already verified, expired, retries exhausted,
        manual review) are resolved without any network I/O. Otherwise
        exactly one strategy check runs and its result is persisted.

        Args:
            verification_id: Proof to verify
            developer_id: If given, the proof must belong to this developer

        Returns:
            VerificationOutcome describing the result and resulting state

        Raises:
            ProofNotFound: If the proof does not exist (or is not owned
                by developer_id when one is given)
        """
        proof = self.repository.get(verification_id)
        if developer_id is not None and proof.developer_id != developer_id:
            raise ProofNotFound(verification_id)

        return self._attempt(proof)

    def _attempt(self, proof: VerificationProof) -> VerificationOutcome:
        """Run policy, then at most one strategy check, against proof as read."""
        outcome = self._enforce_policy(proof)
        if outcome is not None:
            return outcome

        if proof.verification_type is VerificationType.MANUAL_REVIEW:
            return self._outcome(proof, VerifyResult.PENDING_MANUAL_REVIEW, MANUAL_REVIEW_MESSAGE)

        check = self._run_check(proof)
        if check.success:
            return self._record_success(proof)
        return self._record_failure(proof, check.error or "Verification failed")

    def get_status(self, verification_id: str, developer_id: str) -> VerificationProof:
        """
        Read a proof on behalf of its owner.

        Raises:
            ProofNotFound: If missing or owned by another developer
        """
        proof = self.repository.get(verification_id)
        if proof.developer_id != developer_id:
            raise ProofNotFound(verification_id)
        return proof

    def list_verifications(self, developer_id: str) -> list[VerificationProof]:
        """All proofs owned by developer_id, newest first."""
        return self.repository.list_by_developer(developer_id)

    def delete(self, verification_id: str, developer_id: str) -> bool:
        """Hard-delete a proof if developer_id owns it."""
        deleted = self.repository.delete(verification_id, developer_id)
        if deleted:
            logger.info("Verification deleted: id=%s developer=%s", verification_id, developer_id)
        return deleted

    def _enforce_policy(self, proof: VerificationProof) -> VerificationOutcome | None:
        """
        Resolve attempts that must not reach a strategy.

        Returns None when the proof is PENDING, unexpired and has
        retries left.
        """
        if proof.status is ProofStatus.VERIFIED:
            return self._outcome(proof, VerifyResult.ALREADY_VERIFIED, ALREADY_VERIFIED_MESSAGE)

        if proof.status.is_terminal:
            if proof.status is ProofStatus.EXPIRED:
                return self._outcome(proof, VerifyResult.EXPIRED, EXPIRED_MESSAGE)
            return self._outcome(proof, VerifyResult.RETRIES_EXHAUSTED, RETRIES_EXHAUSTED_MESSAGE)

        if proof.is_expired(self.clock()):
            return self._close(proof, ProofStatus.EXPIRED, VerifyResult.EXPIRED, EXPIRED_MESSAGE)

        if proof.retry_count >= proof.max_retries:
            return self._close(
                proof, ProofStatus.FAILED, VerifyResult.RETRIES_EXHAUSTED, RETRIES_EXHAUSTED_MESSAGE
            )

        return None

    def _close(
        self,
        proof: VerificationProof,
        status: ProofStatus,
        result: VerifyResult,
        message: str,
    ) -> VerificationOutcome:
        updated = self._transition(proof, ProofPatch(status=status, failure_reason=message))
        if updated is None:
            # Lost to a concurrent write; decide again from what is stored now
            return self._attempt(self.repository.get(proof.id))

        logger.info("Verification closed: id=%s status=%s", proof.id, status.value)
        return self._outcome(updated, result, message)

    def _run_check(self, proof: VerificationProof) -> CheckResult:
        strategy = self.strategies.get(proof.verification_type)
        if strategy is None:
            return CheckResult(False, "Invalid verification type")

        try:
            return strategy.check(proof.domain, proof.verification_token)
        except Exception as e:
            logger.exception("Strategy raised for verification %s", proof.id)
            return CheckResult(False, f"Verification check failed: {e}")

    def _record_success(self, proof: VerificationProof) -> VerificationOutcome:
        now = self.clock()
        patch = ProofPatch(
            status=ProofStatus.VERIFIED,
            failure_reason=None,
            verified_at=now,
            verification_data={
                "method": proof.verification_type.value,
                "verified_at": now.isoformat(),
            },
        )
        updated = self._transition(proof, patch)
        if updated is None:
            # A concurrent attempt wrote first; the evidence still counts
            # if the proof is open.
            fresh = self.repository.get(proof.id)
            return self._enforce_policy(fresh) or self._record_success(fresh)

        logger.info(
            "Domain verified: id=%s developer=%s domain=%s type=%s",
            updated.id,
            updated.developer_id,
            updated.domain,
            updated.verification_type.value,
        )
        self._notify_verified(updated)
        return self._outcome(updated, VerifyResult.VERIFIED, VERIFIED_MESSAGE)

    def _record_failure(self, proof: VerificationProof, reason: str) -> VerificationOutcome:
        retry_count = proof.retry_count + 1
        status = ProofStatus.FAILED if retry_count >= proof.max_retries else ProofStatus.PENDING

        updated = self._transition(
            proof,
            ProofPatch(status=status, failure_reason=reason, retry_count=retry_count),
        )
        if updated is None:
            # A concurrent attempt already recorded its result for this
            # round; counting ours too would double-increment.
            fresh = self.repository.get(proof.id)
            return self._enforce_policy(fresh) or self._outcome(
                fresh, VerifyResult.CHECK_FAILED, reason
            )

        logger.warning(
            "Verification check failed: id=%s attempt=%d/%d reason=%s",
            updated.id,
            updated.retry_count,
            updated.max_retries,
            reason,
        )
        return self._outcome(updated, VerifyResult.CHECK_FAILED, reason)

    def _transition(self, proof: VerificationProof, patch: ProofPatch) -> VerificationProof | None:
        return self.repository.update(
            proof.id,
            patch,
            expected_status=proof.status,
            expected_retry_count=proof.retry_count,
        )

    def _notify_verified(self, proof: VerificationProof) -> None:
        """
        Tell collaborators about a verified domain.

        Best effort: a failed notification is logged and never reverts
        the VERIFIED state.
        """
        method = proof.verification_type.value.lower()
        try:
            self.developers.mark_domain_verified(proof.developer_id, method)
        except Exception:
            logger.exception("Failed to mark developer %s domain-verified", proof.developer_id)

        try:
            self.notifier.notify_ready_for_review(proof.developer_id)
        except Exception:
            logger.exception("Failed to notify admins about developer %s", proof.developer_id)

    def _outcome(
        self, proof: VerificationProof, result: VerifyResult, message: str
    ) -> VerificationOutcome:
        return VerificationOutcome(
            result=result,
            message=message,
            status=proof.status,
            retry_count=proof.retry_count,
        )

    def _normalize_domain(self, domain: str) -> str:
        """
        Normalize and validate a claimed hostname.

        Applies: strip whitespace + lowercase + drop trailing dot
        """
        if not isinstance(domain, str):
            raise InvalidDomain(repr(domain))

        normalized = domain.strip().lower().rstrip(".")
        if len(normalized) > 253 or not _DOMAIN_RE.match(normalized):
            raise InvalidDomain(domain)
        return normalized

    def _parse_verification_type(self, verification_type: VerificationType | str) -> VerificationType:
        if isinstance(verification_type, VerificationType):
            return verification_type
        try:
            return VerificationType(str(verification_type).strip().upper())
        except ValueError:
            raise InvalidVerificationType(verification_type) from None
