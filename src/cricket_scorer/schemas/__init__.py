"""Pydantic schemas for data validation."""

from .deliveries import (
    AcceptedBall,
    DeliveryOutcome,
    Dismissal,
    DismissalType,
    ExtraType,
    BOWLER_DISMISSALS,
)
from .matches import MatchCreate, MatchFormat, MatchResult, ResultType, Toss
from .ledger import (
    BatterIn,
    BowlerChanged,
    DeliveryRecorded,
    InningsClosed,
    InningsStarted,
    LedgerEntry,
    MatchClosed,
    StrikeSwitched,
    TossRecorded,
    parse_entries,
)
from .state import (
    BattingFigures,
    BowlingFigures,
    Extras,
    FallOfWicket,
    FieldingFigures,
    InningsState,
    InningsStatistics,
    MatchExport,
    MatchSnapshot,
    MatchState,
    OverSummary,
    Partnership,
    PendingReplacement,
    StateChange,
    overs_notation,
)

__all__ = [
    "AcceptedBall",
    "DeliveryOutcome",
    "Dismissal",
    "DismissalType",
    "ExtraType",
    "BOWLER_DISMISSALS",
    "MatchCreate",
    "MatchFormat",
    "MatchResult",
    "ResultType",
    "Toss",
    "BatterIn",
    "BowlerChanged",
    "DeliveryRecorded",
    "InningsClosed",
    "InningsStarted",
    "LedgerEntry",
    "MatchClosed",
    "StrikeSwitched",
    "TossRecorded",
    "parse_entries",
    "BattingFigures",
    "BowlingFigures",
    "Extras",
    "FallOfWicket",
    "FieldingFigures",
    "InningsState",
    "InningsStatistics",
    "MatchExport",
    "MatchSnapshot",
    "MatchState",
    "OverSummary",
    "Partnership",
    "PendingReplacement",
    "StateChange",
    "overs_notation",
]
