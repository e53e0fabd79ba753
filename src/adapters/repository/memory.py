"""
In-memory repository adapter - Implements ProofRepository protocol.

Process-local store for development and tests. A single lock
serializes every read-modify-write, which gives the same
compare-and-set semantics as the PostgreSQL adapter.
"""

import threading
from dataclasses import replace
from datetime import datetime, timezone

from src.domain.exceptions import ProofConflict, ProofNotFound
from src.domain.models import ProofPatch, VerificationProof
from src.domain.ports import ProofStatus


class InMemoryProofRepository:
    """
    Implements ProofRepository protocol with a dict and a lock.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Stored proofs are frozen dataclasses, so readers can never mutate
    stored state.
    """

    def __init__(self) -> None:
        self._proofs: dict[str, VerificationProof] = {}
        self._lock = threading.Lock()

    def create(self, proof: VerificationProof) -> None:
        with self._lock:
            if proof.id in self._proofs:
                raise ProofConflict(proof.id)
            self._proofs[proof.id] = proof

    def get(self, verification_id: str) -> VerificationProof:
        with self._lock:
            try:
                return self._proofs[verification_id]
            except KeyError:
                raise ProofNotFound(verification_id) from None

    def update(
        self,
        verification_id: str,
        patch: ProofPatch,
        *,
        expected_status: ProofStatus,
        expected_retry_count: int,
    ) -> VerificationProof | None:
        with self._lock:
            current = self._proofs.get(verification_id)
            if (
                current is None
                or current.status is not expected_status
                or current.retry_count != expected_retry_count
            ):
                return None

            updated = replace(
                current,
                status=patch.status,
                failure_reason=patch.failure_reason,
                retry_count=current.retry_count if patch.retry_count is None else patch.retry_count,
                verified_at=patch.verified_at or current.verified_at,
                verification_data=(
                    current.verification_data
                    if patch.verification_data is None
                    else patch.verification_data
                ),
                updated_at=datetime.now(timezone.utc),
            )
            self._proofs[verification_id] = updated
            return updated

    def list_by_developer(self, developer_id: str) -> list[VerificationProof]:
        with self._lock:
            owned = [p for p in self._proofs.values() if p.developer_id == developer_id]
        return sorted(owned, key=lambda p: p.created_at, reverse=True)

    def delete(self, verification_id: str, developer_id: str) -> bool:
        with self._lock:
            proof = self._proofs.get(verification_id)
            if proof is None or proof.developer_id != developer_id:
                return False
            del self._proofs[verification_id]
            return True
