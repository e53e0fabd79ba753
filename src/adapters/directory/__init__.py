"""Directory adapters - Lookups against platform developer and app records."""

from .postgres import PostgresAppDirectory, PostgresDeveloperDirectory

__all__ = ["PostgresAppDirectory", "PostgresDeveloperDirectory"]
