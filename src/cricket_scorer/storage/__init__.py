"""Ledger storage backends."""

from .repository import InMemoryMatchRepository, MatchRepository, SqlMatchRepository

__all__ = ["MatchRepository", "InMemoryMatchRepository", "SqlMatchRepository"]
