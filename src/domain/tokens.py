"""
Token generation - Verification tokens and their expiry.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

DEFAULT_TOKEN_PREFIX = "rapid-verify-"
DEFAULT_TTL_DAYS = 7


@dataclass(frozen=True)
class TokenGenerator:
    """
    Produces unguessable verification tokens.

    Tokens are a fixed literal prefix (so they are easy to grep for in
    DNS zones and page sources) followed by 128 bits of randomness from
    the secrets module, hex encoded.
    """

    prefix: str = DEFAULT_TOKEN_PREFIX
    ttl_days: int = DEFAULT_TTL_DAYS

    def generate(self) -> str:
        return f"{self.prefix}{secrets.token_hex(16)}"

    def expiry_for(self, now: datetime) -> datetime:
        return now + timedelta(days=self.ttl_days)
