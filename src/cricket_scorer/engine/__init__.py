"""Scoring engine: rules, state machine, ledger and the service facade."""

from .errors import (
    AwaitingReplacement,
    ConsistencyError,
    MatchNotFound,
    MatchQuarantined,
    NothingToUndo,
    ReplacementViolation,
    RuleViolation,
    ScoringError,
    UndoNotPermitted,
)
from .service import ScoringEngine

__all__ = [
    "ScoringEngine",
    "ScoringError",
    "RuleViolation",
    "ReplacementViolation",
    "AwaitingReplacement",
    "MatchNotFound",
    "NothingToUndo",
    "UndoNotPermitted",
    "ConsistencyError",
    "MatchQuarantined",
]
