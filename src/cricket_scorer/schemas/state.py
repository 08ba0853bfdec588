"""Pydantic schemas for derived match state, statistics and notifications."""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from ..models.innings import InningStatus, CompletionReason
from ..models.matches import MatchStatus
from .deliveries import AcceptedBall, DismissalType
from .matches import MatchCreate, MatchFormat, MatchResult, Toss


def overs_notation(legal_balls: int, balls_per_over: int = 6) -> str:
    """Format a legal ball count in cricket notation, e.g. 27 balls -> ``4.3``."""
    return f"{legal_balls // balls_per_over}.{legal_balls % balls_per_over}"


class BattingFigures(BaseModel):
    player_id: int
    position: int
    runs: int = 0
    balls_faced: int = 0
    fours: int = 0
    sixes: int = 0
    dots: int = 0
    is_out: bool = False
    dismissal_type: Optional[DismissalType] = None
    bowler_id: Optional[int] = None
    fielder_id: Optional[int] = None

    @property
    def strike_rate(self) -> float:
        if not self.balls_faced:
            return 0.0
        return round(self.runs * 100.0 / self.balls_faced, 2)


class BowlingFigures(BaseModel):
    player_id: int
    legal_balls: int = 0
    runs_conceded: int = 0
    wickets: int = 0
    maidens: int = 0
    wides: int = 0
    no_balls: int = 0
    dots: int = 0

    def overs(self, balls_per_over: int = 6) -> str:
        return overs_notation(self.legal_balls, balls_per_over)

    def economy(self, balls_per_over: int = 6) -> float:
        if not self.legal_balls:
            return 0.0
        return round(self.runs_conceded * balls_per_over / self.legal_balls, 2)


class FieldingFigures(BaseModel):
    player_id: int
    catches: int = 0
    run_outs: int = 0
    stumpings: int = 0


class Partnership(BaseModel):
    """Stand between two batters; ``wicket_number`` is the wicket it is for."""

    wicket_number: int
    batter_one_id: int
    batter_two_id: int
    runs: int = 0
    balls: int = 0
    unbroken: bool = True


class FallOfWicket(BaseModel):
    wicket_number: int
    player_out_id: int
    score: int
    overs: str


class InningsStatistics(BaseModel):
    """Per-innings statistics; a view over the ledger, never authoritative."""

    batting: Dict[int, BattingFigures] = Field(default_factory=dict)
    bowling: Dict[int, BowlingFigures] = Field(default_factory=dict)
    fielding: Dict[int, FieldingFigures] = Field(default_factory=dict)
    partnerships: List[Partnership] = Field(default_factory=list)
    fall_of_wickets: List[FallOfWicket] = Field(default_factory=list)

    @property
    def current_partnership(self) -> Optional[Partnership]:
        if self.partnerships and self.partnerships[-1].unbroken:
            return self.partnerships[-1]
        return None


class Extras(BaseModel):
    wides: int = 0
    no_balls: int = 0
    byes: int = 0
    leg_byes: int = 0
    penalties: int = 0

    @property
    def total(self) -> int:
        return self.wides + self.no_balls + self.byes + self.leg_byes + self.penalties


class OverSummary(BaseModel):
    """One over of an innings, derived from the ledger."""

    over_number: int
    bowler_id: int
    deliveries: int = 0
    legal_balls: int = 0
    total_runs: int = 0
    bowler_runs: int = 0
    wickets: int = 0
    all_legal: bool = True
    completed: bool = False
    balls: List[str] = Field(default_factory=list)

    @property
    def maiden(self) -> bool:
        return self.completed and self.all_legal and self.bowler_runs == 0


class PendingReplacement(BaseModel):
    """A dismissed batter whose replacement has not been named yet."""

    player_out_id: int
    slot: Literal["striker", "non_striker"]


class InningsState(BaseModel):
    innings_number: int
    batting_team_id: int
    bowling_team_id: int
    balls_per_over: int = 6
    status: InningStatus = InningStatus.NOT_STARTED
    completion_reason: Optional[CompletionReason] = None

    # Totals
    runs: int = 0
    wickets: int = 0
    legal_balls: int = 0
    deliveries: int = 0
    extras: Extras = Field(default_factory=Extras)
    target: Optional[int] = None

    # Pointers
    striker_id: Optional[int] = None
    non_striker_id: Optional[int] = None
    current_bowler_id: Optional[int] = None
    previous_over_bowler_id: Optional[int] = None
    over_number: int = 0
    overs: List[OverSummary] = Field(default_factory=list)

    # Sub-states
    awaiting_bowler: bool = False
    awaiting_replacement: Optional[PendingReplacement] = None

    # Penalty bookkeeping
    deliberate_short_runs: int = 0
    fielding_penalty_runs: int = 0

    stats: InningsStatistics = Field(default_factory=InningsStatistics)

    @property
    def is_complete(self) -> bool:
        return self.status == InningStatus.COMPLETED

    @property
    def is_in_progress(self) -> bool:
        return self.status == InningStatus.IN_PROGRESS

    @property
    def current_over(self) -> Optional[OverSummary]:
        return self.overs[-1] if self.overs else None

    @property
    def overs_display(self) -> str:
        return overs_notation(self.legal_balls, self.balls_per_over)

    @property
    def run_rate(self) -> float:
        if not self.legal_balls:
            return 0.0
        return round(self.runs * self.balls_per_over / self.legal_balls, 2)

    @property
    def runs_required(self) -> Optional[int]:
        if self.target is None:
            return None
        return max(0, self.target - self.runs)

    @property
    def batters(self) -> tuple:
        return self.striker_id, self.non_striker_id


class MatchState(BaseModel):
    """Whole-match aggregate; a pure fold over the ledger from the setup."""

    match_id: int
    title: Optional[str] = None
    team_a_id: int
    team_b_id: int
    format: MatchFormat = Field(default_factory=MatchFormat)
    status: MatchStatus = MatchStatus.SETUP
    toss: Optional[Toss] = None
    current_innings: int = 0
    innings: List[InningsState] = Field(default_factory=list)
    result: Optional[MatchResult] = None
    last_sequence: int = 0

    @property
    def is_completed(self) -> bool:
        return self.status == MatchStatus.COMPLETED

    def get_innings(self, innings_number: int) -> Optional[InningsState]:
        for innings in self.innings:
            if innings.innings_number == innings_number:
                return innings
        return None

    @property
    def current(self) -> Optional[InningsState]:
        return self.get_innings(self.current_innings)

    def other_team(self, team_id: int) -> int:
        return self.team_b_id if team_id == self.team_a_id else self.team_a_id


class MatchSnapshot(BaseModel):
    """Query view of a match for scoreboards and broadcast."""

    match: MatchState
    current_innings: Optional[InningsState] = None
    current_over: Optional[OverSummary] = None
    striker: Optional[BattingFigures] = None
    non_striker: Optional[BattingFigures] = None
    bowler: Optional[BowlingFigures] = None
    recent_balls: List[AcceptedBall] = Field(default_factory=list)


class StateChange(BaseModel):
    """Notification payload produced after every accepted mutation."""

    event: str
    match_id: int
    innings_number: int
    sequence: int
    match_status: MatchStatus
    innings_status: Optional[InningStatus] = None
    runs: int = 0
    wickets: int = 0
    overs: str = "0.0"
    target: Optional[int] = None
    striker_id: Optional[int] = None
    non_striker_id: Optional[int] = None
    bowler_id: Optional[int] = None
    current_over: Optional[OverSummary] = None
    awaiting_bowler: bool = False
    awaiting_replacement: bool = False
    innings_completed: bool = False
    match_completed: bool = False
    result: Optional[MatchResult] = None
    ball: Optional[AcceptedBall] = None


class MatchExport(BaseModel):
    """Archived form of a match.

    ``entries`` are the ledger entries as JSON payloads in sequence order;
    replaying them over ``setup`` reproduces ``snapshot.match``.
    """

    match_id: int
    setup: MatchCreate
    entries: List[dict] = Field(default_factory=list)
    snapshot: MatchSnapshot
