"""
DNS TXT evidence adapter - Implements EvidenceStrategy via dnspython.

Looks up TXT records at <label>.<domain> and succeeds when one record,
with its character-strings concatenated, equals the token exactly.
"""

import logging

import dns.exception
import dns.resolver

from src.domain.ports import CheckResult

logger = logging.getLogger(__name__)


class DnsTxtStrategy:
    """
    Implements EvidenceStrategy protocol for DNS_TXT proofs.

    Uses structural subtyping - no explicit inheritance from Protocol.
    A resolver is built per check unless one is injected, so the
    strategy itself carries no shared mutable state.
    """

    def __init__(
        self,
        label: str = "_rapid-verify",
        timeout_seconds: float = 10.0,
        resolver: dns.resolver.Resolver | None = None,
    ) -> None:
        self._label = label
        self._timeout = timeout_seconds
        self._resolver = resolver

    def check(self, domain: str, token: str) -> CheckResult:
        query_name = f"{self._label}.{domain}"

        try:
            resolver = self._resolver or dns.resolver.Resolver()
            answers = resolver.resolve(query_name, "TXT", lifetime=self._timeout)
            records = [self._record_text(rdata) for rdata in answers]
        except dns.resolver.NXDOMAIN:
            return CheckResult(False, f"DNS lookup failed: {query_name} does not exist (NXDOMAIN)")
        except dns.resolver.NoAnswer:
            return CheckResult(False, f"DNS lookup failed: no TXT records at {query_name}")
        except dns.exception.Timeout:
            return CheckResult(False, f"DNS lookup failed: timed out after {self._timeout:g}s")
        except dns.resolver.NoNameservers:
            return CheckResult(False, f"DNS lookup failed: no nameserver answered for {query_name} (SERVFAIL)")
        except Exception as e:
            logger.debug("TXT lookup for %s raised %r", query_name, e)
            return CheckResult(False, f"DNS lookup failed: {e}")

        if token in records:
            return CheckResult(True)

        return CheckResult(False, "Verification token not found in DNS TXT records")

    @staticmethod
    def _record_text(rdata) -> str:
        return b"".join(rdata.strings).decode("utf-8", errors="replace")
