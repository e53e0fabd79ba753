"""
Domain layer - Pure business logic with zero framework imports.

This package contains the core business logic for domain ownership
verification. It defines its own port interfaces for infrastructure
abstraction, ensuring true hexagonal architecture decoupling.
"""

from .exceptions import (
    AppNotFound,
    DeveloperNotFound,
    InvalidDomain,
    InvalidVerificationType,
    ProofConflict,
    ProofNotFound,
    VerificationError,
)
from .instructions import InstructionRenderer
from .models import InitiatedVerification, ProofPatch, VerificationOutcome, VerificationProof
from .ports import (
    AdminNotifier,
    AppDirectory,
    CheckResult,
    DeveloperDirectory,
    EvidenceStrategy,
    ProofRepository,
    ProofStatus,
    VerificationType,
    VerifyResult,
)
from .tokens import TokenGenerator
from .verification import VerificationService

__all__ = [
    "AdminNotifier",
    "AppDirectory",
    "AppNotFound",
    "CheckResult",
    "DeveloperDirectory",
    "DeveloperNotFound",
    "EvidenceStrategy",
    "InitiatedVerification",
    "InstructionRenderer",
    "InvalidDomain",
    "InvalidVerificationType",
    "ProofConflict",
    "ProofNotFound",
    "ProofPatch",
    "ProofRepository",
    "ProofStatus",
    "TokenGenerator",
    "VerificationError",
    "VerificationOutcome",
    "VerificationProof",
    "VerificationService",
    "VerificationType",
    "VerifyResult",
]
