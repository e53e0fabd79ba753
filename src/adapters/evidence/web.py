"""
Website evidence adapters - Implement EvidenceStrategy via httpx.

MetaTagStrategy fetches the homepage and looks for the verification
meta tag. FileUploadStrategy fetches a well-known text file and
compares its trimmed body to the token.

Both report every failure as CheckResult(False, reason) with a reason
specific enough for the developer to know what to fix.
"""

import logging
import time
from html.parser import HTMLParser

import httpx

from src.domain.ports import CheckResult

logger = logging.getLogger(__name__)


class _MetaTagParser(HTMLParser):
    """Collects content attributes of <meta> tags with a matching name."""

    def __init__(self, names: frozenset[str]) -> None:
        super().__init__(convert_charrefs=True)
        self._names = names
        self.contents: list[str] = []

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag != "meta":
            return
        values = {name: value or "" for name, value in attrs}
        if values.get("name", "").strip().lower() in self._names:
            self.contents.append(values.get("content", ""))


class ResponseTooLarge(Exception):
    """Evidence body exceeded the configured size cap."""


class _WebEvidence:
    """
    Shared httpx fetch with user-agent, error mapping and an overall deadline.

    httpx timeouts apply per connect/read/write, so a server dripping
    bytes (or a chain of redirects) could hold a check open indefinitely.
    Every fetch therefore gets one deadline covering all redirect hops
    and the body, and the body is streamed against a size cap.
    """

    max_bytes = 1024 * 1024

    def __init__(
        self,
        user_agent: str = "RapidTechStore-Verifier/1.0",
        timeout_seconds: float = 10.0,
        transport: httpx.BaseTransport | None = None,
        max_bytes: int | None = None,
    ) -> None:
        self._user_agent = user_agent
        self._timeout = timeout_seconds
        self._transport = transport
        if max_bytes is not None:
            self.max_bytes = max_bytes

    def _fetch(self, url: str, accept: str) -> str:
        """
        GET url and return the decoded body.

        Raises:
            httpx.HTTPError: On network failure, non-2xx status, or when
                the overall deadline passes (httpx.TimeoutException)
            ResponseTooLarge: If the body exceeds max_bytes
        """
        deadline = time.monotonic() + self._timeout

        def remaining(request: httpx.Request) -> float:
            left = deadline - time.monotonic()
            if left <= 0:
                raise httpx.ReadTimeout("overall deadline exceeded", request=request)
            return left

        def on_request(request: httpx.Request) -> None:
            # Each redirect hop only gets what is left of the budget
            request.extensions["timeout"] = httpx.Timeout(remaining(request)).as_dict()

        def on_response(response: httpx.Response) -> None:
            remaining(response.request)

        with httpx.Client(
            timeout=self._timeout,
            follow_redirects=True,
            max_redirects=5,
            transport=self._transport,
            event_hooks={"request": [on_request], "response": [on_response]},
        ) as client:
            headers = {"user-agent": self._user_agent, "accept": accept}
            with client.stream("GET", url, headers=headers) as response:
                response.raise_for_status()
                body = bytearray()
                for chunk in response.iter_bytes():
                    remaining(response.request)
                    body.extend(chunk)
                    if len(body) > self.max_bytes:
                        raise ResponseTooLarge(f"response larger than {self.max_bytes} bytes")
                return body.decode(response.charset_encoding or "utf-8", errors="replace")

    def _describe(self, error: Exception) -> str:
        if isinstance(error, httpx.HTTPStatusError):
            return f"HTTP {error.response.status_code}"
        if isinstance(error, httpx.TimeoutException):
            return f"timed out after {self._timeout:g}s"
        return str(error) or type(error).__name__


class MetaTagStrategy(_WebEvidence):
    """
    Implements EvidenceStrategy protocol for META_TAG proofs.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        meta_name: str = "rapid-verify",
        legacy_names: tuple[str, ...] = ("rapidtech-site-verification",),
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._names = frozenset(name.lower() for name in (meta_name, *legacy_names))

    def check(self, domain: str, token: str) -> CheckResult:
        url = f"https://{domain}/"

        try:
            html = self._fetch(url, "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8")
        except Exception as e:
            logger.debug("Homepage fetch for %s failed: %r", domain, e)
            return CheckResult(False, f"Failed to fetch website: {self._describe(e)}")

        try:
            parser = _MetaTagParser(self._names)
            parser.feed(html)
            parser.close()
        except Exception as e:
            return CheckResult(False, f"Failed to parse website: {e}")

        if not parser.contents:
            return CheckResult(False, "Verification meta tag not found")

        if token in parser.contents:
            return CheckResult(True)

        return CheckResult(False, "Verification meta tag token mismatch")


class FileUploadStrategy(_WebEvidence):
    """
    Implements EvidenceStrategy protocol for FILE_UPLOAD proofs.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    max_bytes = 4096

    def __init__(self, file_path: str = "/rapid-verify.txt", **kwargs) -> None:
        super().__init__(**kwargs)
        self._file_path = file_path if file_path.startswith("/") else f"/{file_path}"

    def check(self, domain: str, token: str) -> CheckResult:
        url = f"https://{domain}{self._file_path}"

        try:
            body = self._fetch(url, "text/plain,*/*;q=0.8")
        except Exception as e:
            logger.debug("Verification file fetch for %s failed: %r", domain, e)
            return CheckResult(False, f"Failed to fetch verification file: {self._describe(e)}")

        if body.strip() == token:
            return CheckResult(True)

        return CheckResult(False, "Verification file content does not match token")
