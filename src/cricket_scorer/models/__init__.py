"""Database models for the cricket scoring engine."""

from .base import Base
from .matches import Match, MatchStatus, TossDecision
from .innings import Inning, InningStatus, CompletionReason
from .ledger import LedgerEntryRecord

__all__ = [
    "Base",
    "Match",
    "MatchStatus",
    "TossDecision",
    "Inning",
    "InningStatus",
    "CompletionReason",
    "LedgerEntryRecord",
]
