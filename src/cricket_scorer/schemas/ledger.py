"""Ledger entry schemas.

Every accepted operation on a match is recorded as one entry. Replaying the
entries in sequence order from the match setup reproduces the match state.
"""

from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from ..models.innings import CompletionReason
from ..models.matches import TossDecision
from .deliveries import AcceptedBall


class _Entry(BaseModel):
    sequence: int = 0
    innings_number: int = 0


class TossRecorded(_Entry):
    kind: Literal["toss"] = "toss"
    winner_team_id: int
    decision: TossDecision


class InningsStarted(_Entry):
    kind: Literal["innings_started"] = "innings_started"
    striker_id: int
    non_striker_id: int
    bowler_id: int


class BowlerChanged(_Entry):
    kind: Literal["bowler_changed"] = "bowler_changed"
    bowler_id: int


class BatterIn(_Entry):
    kind: Literal["batter_in"] = "batter_in"
    player_id: int


class StrikeSwitched(_Entry):
    kind: Literal["strike_switched"] = "strike_switched"


class DeliveryRecorded(_Entry):
    kind: Literal["delivery"] = "delivery"
    ball: AcceptedBall


class InningsClosed(_Entry):
    kind: Literal["innings_closed"] = "innings_closed"
    reason: CompletionReason = CompletionReason.CLOSED


class MatchClosed(_Entry):
    kind: Literal["match_closed"] = "match_closed"
    note: Optional[str] = None


LedgerEntry = Annotated[
    Union[
        TossRecorded,
        InningsStarted,
        BowlerChanged,
        BatterIn,
        StrikeSwitched,
        DeliveryRecorded,
        InningsClosed,
        MatchClosed,
    ],
    Field(discriminator="kind"),
]

_entries_adapter = TypeAdapter(List[LedgerEntry])


def parse_entries(data: list) -> List[LedgerEntry]:
    """Rebuild ledger entries from their JSON payloads, keeping their order."""
    return _entries_adapter.validate_python(data)
