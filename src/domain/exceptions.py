"""
Domain exceptions - Semantic error types for domain verification.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
"""


class VerificationError(Exception):
    """Base class for domain verification errors."""

    pass


class DeveloperNotFound(VerificationError):
    """Developer does not exist."""

    pass


class AppNotFound(VerificationError):
    """App does not exist or belongs to another developer."""

    pass


class InvalidDomain(VerificationError):
    """Domain is not a syntactically valid hostname."""

    pass


class InvalidVerificationType(VerificationError):
    """Verification type is not one of the supported methods."""

    pass


class ProofNotFound(VerificationError):
    """Proof does not exist or is not owned by the caller."""

    pass


class ProofConflict(VerificationError):
    """A proof with the same id already exists."""

    pass
