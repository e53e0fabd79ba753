"""Repository adapters - Database implementations."""

from .memory import InMemoryProofRepository
from .postgres import PostgresProofRepository, run_migrations

__all__ = ["InMemoryProofRepository", "PostgresProofRepository", "run_migrations"]
