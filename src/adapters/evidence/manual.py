"""
Manual review adapter - EvidenceStrategy with no automated check.

VerificationService never dispatches MANUAL_REVIEW proofs to a
strategy; this keeps the type mapping complete and answers honestly
if it is ever called directly.
"""

from src.domain.ports import CheckResult

PENDING_REVIEW_REASON = "Pending manual review"


class ManualReviewStrategy:
    """Implements EvidenceStrategy protocol for MANUAL_REVIEW proofs."""

    def check(self, domain: str, token: str) -> CheckResult:
        return CheckResult(False, PENDING_REVIEW_REASON)
