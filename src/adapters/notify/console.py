"""
Console admin notifier adapter - Implements AdminNotifier protocol.

This module provides a console-based implementation of the domain's
admin notifier port, logging review requests for demo purposes.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleAdminNotifier:
    """
    Implements AdminNotifier protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - the admin review queue is fed by
    whoever tails these logs.
    """

    def notify_ready_for_review(self, developer_id: str) -> None:
        """
        Log that a developer's domain is verified and awaits human review.

        Args:
            developer_id: Developer whose proof just reached VERIFIED
        """
        logger.info("[REVIEW] Developer: %s domain verified, ready for review", developer_id)
