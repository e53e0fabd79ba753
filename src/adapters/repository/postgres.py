"""
PostgreSQL repository adapter - Implements ProofRepository protocol.

This module provides the PostgreSQL implementation of the domain's
repository port using psycopg3 with raw SQL.

Concurrency Design - Compare-and-Set Updates:
---------------------------------------------
Evidence checks perform network I/O that can take up to the check
timeout, so no row lock is held while a strategy runs. Instead every
state transition is a single conditional UPDATE:

    UPDATE ... WHERE id = %s AND status = %s AND retry_count = %s

Under READ COMMITTED, a concurrent writer blocks on the row lock and
then re-evaluates the WHERE clause against the committed row. The
loser matches zero rows and gets None back, so two attempts that read
the same state can never both apply. This keeps retry_count from being
double-incremented or pushed past max_retries, and allows exactly one
transition into VERIFIED.
"""

import logging
from pathlib import Path
from typing import Any

from psycopg import errors
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from src.domain.exceptions import ProofConflict, ProofNotFound
from src.domain.models import ProofPatch, VerificationProof
from src.domain.ports import ProofStatus, VerificationType

logger = logging.getLogger(__name__)

_COLUMNS = """
    id, developer_id, app_id, domain, verification_type, verification_token,
    status, retry_count, max_retries, failure_reason, verification_data,
    created_at, expires_at, verified_at, updated_at
"""


def _row_to_proof(row: dict[str, Any]) -> VerificationProof:
    return VerificationProof(
        id=row["id"],
        developer_id=row["developer_id"],
        app_id=row["app_id"],
        domain=row["domain"],
        verification_type=VerificationType(row["verification_type"]),
        verification_token=row["verification_token"],
        status=ProofStatus(row["status"]),
        retry_count=row["retry_count"],
        max_retries=row["max_retries"],
        failure_reason=row["failure_reason"],
        verification_data=row["verification_data"],
        created_at=row["created_at"],
        expires_at=row["expires_at"],
        verified_at=row["verified_at"],
        updated_at=row["updated_at"],
    )


class PostgresProofRepository:
    """
    Implements ProofRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def create(self, proof: VerificationProof) -> None:
        """
        Insert a new PENDING proof.

        Raises:
            ProofConflict: If the id (or token) is already taken
        """
        sql = f"""
            INSERT INTO verification_proofs ({_COLUMNS})
            VALUES (
                %(id)s, %(developer_id)s, %(app_id)s, %(domain)s, %(verification_type)s,
                %(verification_token)s, %(status)s, %(retry_count)s, %(max_retries)s,
                %(failure_reason)s, %(verification_data)s,
                %(created_at)s, %(expires_at)s, %(verified_at)s, %(updated_at)s
            )
            ON CONFLICT (id) DO NOTHING
        """
        params = {
            "id": proof.id,
            "developer_id": proof.developer_id,
            "app_id": proof.app_id,
            "domain": proof.domain,
            "verification_type": proof.verification_type.value,
            "verification_token": proof.verification_token,
            "status": proof.status.value,
            "retry_count": proof.retry_count,
            "max_retries": proof.max_retries,
            "failure_reason": proof.failure_reason,
            "verification_data": Jsonb(proof.verification_data) if proof.verification_data else None,
            "created_at": proof.created_at,
            "expires_at": proof.expires_at,
            "verified_at": proof.verified_at,
            "updated_at": proof.updated_at,
        }

        with self._pool.connection() as conn, conn.cursor() as cursor:
            try:
                cursor.execute(sql, params)
            except errors.UniqueViolation:
                conn.rollback()
                raise ProofConflict(proof.id) from None
            conn.commit()
            # 0 rows means ON CONFLICT (id) skipped the insert
            if cursor.rowcount != 1:
                raise ProofConflict(proof.id)

    def get(self, verification_id: str) -> VerificationProof:
        """
        Load a proof by id.

        Raises:
            ProofNotFound: If no proof has this id
        """
        sql = f"SELECT {_COLUMNS} FROM verification_proofs WHERE id = %s"

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, (verification_id,))
            row = cursor.fetchone()

        if row is None:
            raise ProofNotFound(verification_id)
        return _row_to_proof(row)

    def update(
        self,
        verification_id: str,
        patch: ProofPatch,
        *,
        expected_status: ProofStatus,
        expected_retry_count: int,
    ) -> VerificationProof | None:
        """
        Apply patch only if status and retry_count are unchanged.

        Returns:
            The updated proof, or None if a concurrent writer got there
            first (or the proof was deleted)
        """
        sql = f"""
            UPDATE verification_proofs
            SET status = %(status)s,
                failure_reason = %(failure_reason)s,
                retry_count = COALESCE(%(retry_count)s::integer, retry_count),
                verified_at = COALESCE(%(verified_at)s::timestamptz, verified_at),
                verification_data = COALESCE(%(verification_data)s::jsonb, verification_data),
                updated_at = NOW()
            WHERE id = %(id)s
              AND status = %(expected_status)s
              AND retry_count = %(expected_retry_count)s
            RETURNING {_COLUMNS}
        """
        params = {
            "id": verification_id,
            "status": patch.status.value,
            "failure_reason": patch.failure_reason,
            "retry_count": patch.retry_count,
            "verified_at": patch.verified_at,
            "verification_data": Jsonb(patch.verification_data)
            if patch.verification_data is not None
            else None,
            "expected_status": expected_status.value,
            "expected_retry_count": expected_retry_count,
        }

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, params)
            row = cursor.fetchone()
            conn.commit()

        if row is None:
            logger.debug("Conditional update on %s matched no row", verification_id)
            return None
        return _row_to_proof(row)

    def list_by_developer(self, developer_id: str) -> list[VerificationProof]:
        """Return all proofs owned by developer_id, newest first."""
        sql = f"""
            SELECT {_COLUMNS} FROM verification_proofs
            WHERE developer_id = %s
            ORDER BY created_at DESC, id
        """

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, (developer_id,))
            rows = cursor.fetchall()

        return [_row_to_proof(row) for row in rows]

    def delete(self, verification_id: str, developer_id: str) -> bool:
        """
        Delete a proof if developer_id owns it.

        Returns:
            True if a row was deleted; False for a missing id and for
            someone else's proof alike
        """
        sql = "DELETE FROM verification_proofs WHERE id = %s AND developer_id = %s"

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (verification_id, developer_id))
            conn.commit()
            return cursor.rowcount == 1


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration must be idempotent (IF NOT EXISTS, etc.) since they
    run on every startup.

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %d migration(s)", len(sql_files))

    for sql_file in sql_files:
        try:
            with pool.connection() as conn:
                conn.execute(sql_file.read_text())
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
        logger.info("Migration complete: %s", sql_file.name)
