"""
Adversarial tests for concurrent verification attempts.

Verifies that concurrent verify calls on the same proof are handled
atomically, so a developer (or a script hammering the endpoint) cannot:
- Push retry_count past max_retries
- Double-count a single round of failed checks
- Trigger more than one VERIFIED transition and notification

Defense: every state change is a conditional UPDATE on
(status, retry_count); losers match zero rows and re-read.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresProofRepository
from src.domain.models import ProofPatch
from src.domain.ports import CheckResult, ProofStatus, VerificationType, VerifyResult
from src.domain.verification import VerificationService

pytestmark = pytest.mark.adversarial


def slow(result: CheckResult, delay: float = 0.05):
    """Strategy side effect that holds the check open so attempts overlap."""

    def check(domain: str, token: str) -> CheckResult:
        time.sleep(delay)
        return result

    return check


class TestConcurrentCompareAndSet:
    """Races directly against the repository."""

    def test_exactly_one_writer_wins(
        self, repository: PostgresProofRepository, make_proof
    ) -> None:
        """Ten writers expecting the same state: exactly one update applies."""
        proof = make_proof()
        repository.create(proof)
        barrier = threading.Barrier(10)

        def attempt(n: int):
            barrier.wait(timeout=10)
            return repository.update(
                proof.id,
                ProofPatch(status=ProofStatus.PENDING, failure_reason=f"attempt {n}", retry_count=1),
                expected_status=ProofStatus.PENDING,
                expected_retry_count=0,
            )

        with ThreadPoolExecutor(max_workers=10) as executor:
            results = list(executor.map(attempt, range(10)))

        winners = [r for r in results if r is not None]
        assert len(winners) == 1, f"{len(winners)} concurrent updates applied (expected 1)"
        assert repository.get(proof.id).retry_count == 1


class TestConcurrentVerify:
    """Races through VerificationService.verify()."""

    def test_concurrent_failures_never_exceed_max_retries(
        self,
        pg_service: VerificationService,
        attack_strategies: dict[VerificationType, Mock],
        repository: PostgresProofRepository,
    ) -> None:
        """
        Attack scenario: 20 parallel verify calls with wrong evidence.

        Expected defense: retry_count stays within max_retries and the
        stored row obeys the retry bound constraint.
        """
        attack_strategies[VerificationType.DNS_TXT].check.side_effect = slow(
            CheckResult(False, "Verification token not found in DNS TXT records")
        )
        initiated = pg_service.initiate("dev-1", "example.com", VerificationType.DNS_TXT)

        with ThreadPoolExecutor(max_workers=20) as executor:
            outcomes = list(
                executor.map(lambda _: pg_service.verify(initiated.verification_id), range(20))
            )

        proof = repository.get(initiated.verification_id)
        assert 1 <= proof.retry_count <= proof.max_retries
        assert all(o.retry_count <= proof.max_retries for o in outcomes)
        assert not any(o.verified for o in outcomes)

    def test_concurrent_failures_are_counted_once_per_round(
        self,
        pg_service: VerificationService,
        attack_strategies: dict[VerificationType, Mock],
        repository: PostgresProofRepository,
    ) -> None:
        """Attempts that all read retry_count=0 together advance it by one."""
        attack_strategies[VerificationType.META_TAG].check.side_effect = slow(
            CheckResult(False, "Verification meta tag not found"), delay=0.2
        )
        initiated = pg_service.initiate("dev-1", "example.com", VerificationType.META_TAG)
        barrier = threading.Barrier(5)

        def attempt(_: int):
            barrier.wait(timeout=10)
            return pg_service.verify(initiated.verification_id)

        with ThreadPoolExecutor(max_workers=5) as executor:
            list(executor.map(attempt, range(5)))

        assert repository.get(initiated.verification_id).retry_count == 1

    def test_concurrent_successes_verify_once(
        self,
        pg_service: VerificationService,
        attack_strategies: dict[VerificationType, Mock],
        pg_notifier: Mock,
        pg_pool: ConnectionPool,
    ) -> None:
        """Exactly one attempt performs the VERIFIED transition and notifies."""
        attack_strategies[VerificationType.FILE_UPLOAD].check.side_effect = slow(CheckResult(True))
        initiated = pg_service.initiate("dev-1", "example.com", VerificationType.FILE_UPLOAD)

        with ThreadPoolExecutor(max_workers=8) as executor:
            outcomes = list(
                executor.map(lambda _: pg_service.verify(initiated.verification_id), range(8))
            )

        results = [o.result for o in outcomes]
        assert results.count(VerifyResult.VERIFIED) == 1
        assert results.count(VerifyResult.ALREADY_VERIFIED) == 7
        pg_notifier.notify_ready_for_review.assert_called_once_with("dev-1")

        with pg_pool.connection() as conn:
            verified = conn.execute(
                "SELECT is_domain_verified FROM developers WHERE id = %s", ("dev-1",)
            ).fetchone()[0]
        assert verified is True

    def test_concurrent_initiates_issue_distinct_proofs(
        self, pg_service: VerificationService, repository: PostgresProofRepository
    ) -> None:
        """Parallel initiate calls never collide on id or token."""
        with ThreadPoolExecutor(max_workers=10) as executor:
            initiated = list(
                executor.map(
                    lambda _: pg_service.initiate("dev-1", "example.com", VerificationType.DNS_TXT),
                    range(10),
                )
            )

        assert len({i.verification_id for i in initiated}) == 10
        assert len({i.token for i in initiated}) == 10
        assert len(repository.list_by_developer("dev-1")) == 10
