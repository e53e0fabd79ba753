"""
PostgreSQL directory adapters - Implement DeveloperDirectory and AppDirectory.

The developers and apps tables belong to the wider platform; this
service only checks existence and ownership, and flips the developer's
domain-verified flag once a proof succeeds.
"""

import logging

from psycopg_pool import ConnectionPool

logger = logging.getLogger(__name__)


class PostgresDeveloperDirectory:
    """
    Implements DeveloperDirectory protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def exists(self, developer_id: str) -> bool:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("SELECT 1 FROM developers WHERE id = %s", (developer_id,))
            return cursor.fetchone() is not None

    def mark_domain_verified(self, developer_id: str, method: str) -> None:
        """
        Flag the developer as domain-verified.

        Args:
            developer_id: Developer that owns the verified proof
            method: Lowercased verification type, e.g. "dns_txt"
        """
        sql = """
            UPDATE developers
            SET is_domain_verified = TRUE,
                domain_verification_method = %s,
                updated_at = NOW()
            WHERE id = %s
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (method, developer_id))
            conn.commit()
            if cursor.rowcount != 1:
                logger.warning("Developer %s vanished before it could be marked verified", developer_id)


class PostgresAppDirectory:
    """
    Implements AppDirectory protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def exists(self, app_id: str, developer_id: str) -> bool:
        """True only if the app exists and belongs to developer_id."""
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(
                "SELECT 1 FROM apps WHERE id = %s AND developer_id = %s",
                (app_id, developer_id),
            )
            return cursor.fetchone() is not None
