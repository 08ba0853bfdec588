"""Pydantic schemas for delivery outcomes and accepted balls."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ExtraType(str, Enum):
    """Extras classification of a delivery."""
    NONE = "none"
    WIDE = "wide"
    NO_BALL = "no_ball"
    BYE = "bye"
    LEG_BYE = "leg_bye"
    PENALTY = "penalty"


class DismissalType(str, Enum):
    """Modes of dismissal that can happen on a delivery."""
    BOWLED = "bowled"
    CAUGHT = "caught"
    LBW = "lbw"
    RUN_OUT = "run_out"
    STUMPED = "stumped"
    HIT_WICKET = "hit_wicket"
    OBSTRUCTING_FIELD = "obstructing_field"
    HANDLED_BALL = "handled_ball"
    HIT_BALL_TWICE = "hit_ball_twice"


# Dismissals credited to the bowler
BOWLER_DISMISSALS = frozenset({
    DismissalType.BOWLED,
    DismissalType.CAUGHT,
    DismissalType.LBW,
    DismissalType.STUMPED,
    DismissalType.HIT_WICKET,
})

# Running runs (not boundaries) are the ones a short run can cut down
BOUNDARY_RUNS = (4, 6)


class Dismissal(BaseModel):
    """Dismissal details attached to a delivery."""

    dismissal_type: DismissalType = Field(..., description="How the batter was out")
    player_out_id: int = Field(..., description="Dismissed batter")
    fielder_id: Optional[int] = Field(None, description="Catcher, run-out fielder or keeper")

    @property
    def credited_to_bowler(self) -> bool:
        return self.dismissal_type in BOWLER_DISMISSALS


class DeliveryOutcome(BaseModel):
    """A proposed delivery outcome as submitted by a scorer, UI or parser.

    ``runs`` are runs off the bat. ``extra_runs`` are runs taken as wides,
    byes or leg byes, or without bat contact off a no ball; the automatic
    wide/no-ball penalty is added by the engine and must not be included.
    """

    runs: int = Field(0, ge=0, le=7, description="Runs off the bat")
    extra_type: ExtraType = Field(ExtraType.NONE, description="Extras classification")
    extra_runs: int = Field(0, ge=0, le=7, description="Runs taken as extras")
    penalty_runs: int = Field(0, ge=0, le=10, description="Penalty runs awarded to the batting side")
    dismissal: Optional[Dismissal] = Field(None, description="Dismissal on this delivery")
    short_runs: int = Field(0, ge=0, le=3, description="Runs called short by the umpire")
    deliberate_short_run: bool = Field(False, description="Umpire judged the short running deliberate")
    dead_ball: bool = Field(False, description="Delivery called dead")
    bowler_id: Optional[int] = Field(None, description="Bowler as seen by the client, checked if given")
    striker_id: Optional[int] = Field(None, description="Striker as seen by the client, checked if given")
    commentary: Optional[str] = Field(None, max_length=2000, description="Free text commentary")

    @field_validator("commentary")
    @classmethod
    def strip_commentary(cls, v):
        """Normalise blank commentary to None."""
        if v is not None:
            v = v.strip()
            return v or None
        return v

    @model_validator(mode="after")
    def validate_run_composition(self):
        """Validate that runs fit the extras classification."""
        if self.runs and self.extra_type in (ExtraType.WIDE, ExtraType.BYE, ExtraType.LEG_BYE):
            raise ValueError(f"Runs off the bat are not possible on a {self.extra_type.value}")
        if self.extra_runs and self.extra_type in (ExtraType.NONE, ExtraType.PENALTY):
            raise ValueError("extra_runs require a wide, no ball, bye or leg bye")
        if self.extra_type in (ExtraType.BYE, ExtraType.LEG_BYE) and not self.extra_runs:
            raise ValueError(f"A {self.extra_type.value} must carry at least one run")
        if self.extra_type == ExtraType.PENALTY and not self.penalty_runs:
            raise ValueError("A penalty delivery must carry penalty_runs")
        if self.deliberate_short_run and not self.short_runs:
            raise ValueError("deliberate_short_run requires short_runs")
        if self.short_runs:
            if self.runs and self.runs in BOUNDARY_RUNS and not self.extra_runs:
                raise ValueError("A boundary cannot be run short")
            if self.short_runs > self.running_runs:
                raise ValueError("short_runs cannot exceed the runs attempted")
        return self

    @property
    def running_runs(self) -> int:
        """Runs the batters attempted to run on this delivery."""
        return self.runs + self.extra_runs


class AcceptedBall(BaseModel):
    """A validated delivery with its derived annotations, as stored in the ledger."""

    innings_number: int = Field(..., ge=1, description="Innings number")
    over_number: int = Field(..., ge=1, description="Over number")
    ball_in_over: int = Field(..., ge=1, description="Delivery sequence within the over, extras included")
    legal_ball_in_over: int = Field(..., ge=0, description="Legal deliveries in the over after this one")
    striker_id: int = Field(..., description="Striker")
    non_striker_id: int = Field(..., description="Non-striker")
    bowler_id: int = Field(..., description="Bowler")
    runs_off_bat: int = Field(0, ge=0, description="Runs credited to the striker")
    extra_type: ExtraType = Field(ExtraType.NONE, description="Extras classification")
    wides: int = Field(0, ge=0, description="Wide runs, penalty included")
    no_balls: int = Field(0, ge=0, description="No-ball runs, penalty included")
    byes: int = Field(0, ge=0, description="Byes")
    leg_byes: int = Field(0, ge=0, description="Leg byes")
    penalty_runs: int = Field(0, ge=0, description="Penalty runs to the batting side")
    fielding_penalty_runs: int = Field(0, ge=0, description="Penalty runs to the fielding side")
    is_legal: bool = Field(True, description="Counts toward the over")
    is_dead_ball: bool = Field(False, description="Delivery was called dead")
    short_runs: int = Field(0, ge=0, description="Runs called short")
    deliberate_short_run: bool = Field(False, description="Short running was deliberate")
    dismissal: Optional[Dismissal] = Field(None, description="Dismissal, if any")
    commentary: Optional[str] = Field(None, max_length=2000, description="Ball commentary")

    @property
    def extras(self) -> int:
        return self.wides + self.no_balls + self.byes + self.leg_byes + self.penalty_runs

    @property
    def total_runs(self) -> int:
        """Runs added to the batting side's total by this ball."""
        return self.runs_off_bat + self.extras

    @property
    def bowler_runs(self) -> int:
        """Runs charged against the bowler."""
        return self.runs_off_bat + self.wides + self.no_balls

    @property
    def is_wicket(self) -> bool:
        return self.dismissal is not None

    @property
    def is_four(self) -> bool:
        return self.runs_off_bat == 4

    @property
    def is_six(self) -> bool:
        return self.runs_off_bat == 6

    @property
    def faced_by_striker(self) -> bool:
        """Wides and dead balls are not balls faced; no balls are."""
        return not self.is_dead_ball and self.extra_type != ExtraType.WIDE

    @property
    def label(self) -> str:
        """Short scorebook label, e.g. ``4``, ``1wd``, ``2lb``, ``W``."""
        if self.is_dead_ball:
            return "db"
        if self.is_wicket:
            return "W" if not self.total_runs else f"{self.total_runs}W"
        if self.extra_type == ExtraType.WIDE:
            return f"{self.wides}wd"
        if self.extra_type == ExtraType.NO_BALL:
            return f"{self.no_balls + self.runs_off_bat}nb"
        if self.extra_type == ExtraType.BYE:
            return f"{self.byes}b"
        if self.extra_type == ExtraType.LEG_BYE:
            return f"{self.leg_byes}lb"
        if self.extra_type == ExtraType.PENALTY:
            return f"{self.penalty_runs}p"
        return str(self.runs_off_bat)

    def __repr__(self) -> str:
        return f"<AcceptedBall({self.over_number}.{self.ball_in_over}, {self.label})>"
