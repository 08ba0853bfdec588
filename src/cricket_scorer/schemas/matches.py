"""Pydantic schemas for match setup and results."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..models.matches import TossDecision


class MatchFormat(BaseModel):
    """Format parameters of a limited-overs match."""

    balls_per_over: int = Field(6, ge=1, le=10, description="Legal deliveries per over")
    overs_per_innings: Optional[int] = Field(20, ge=1, description="Overs per innings, None for unlimited")
    players_per_side: int = Field(11, ge=2, le=15, description="Players per side")

    @property
    def max_wickets(self) -> int:
        return self.players_per_side - 1

    @property
    def legal_ball_quota(self) -> Optional[int]:
        if self.overs_per_innings is None:
            return None
        return self.overs_per_innings * self.balls_per_over


class MatchCreate(BaseModel):
    """Schema for creating a new match."""

    title: Optional[str] = Field(None, max_length=200, description="Match title")
    team_a_id: int = Field(..., description="First team ID")
    team_b_id: int = Field(..., description="Second team ID")
    format: MatchFormat = Field(default_factory=MatchFormat, description="Format parameters")

    @field_validator("title")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if v else v

    @model_validator(mode="after")
    def validate_different_teams(self):
        """Validate that the two teams are different."""
        if self.team_a_id == self.team_b_id:
            raise ValueError("A match needs two different teams")
        return self


class Toss(BaseModel):
    """Toss outcome."""

    winner_team_id: int = Field(..., description="Team that won the toss")
    decision: TossDecision = Field(..., description="Elected to bat or bowl")


class ResultType(str, Enum):
    """How a match was decided."""
    RUNS = "runs"
    WICKETS = "wickets"
    TIE = "tie"
    NO_RESULT = "no_result"


class MatchResult(BaseModel):
    """Final result of a completed match."""

    result_type: ResultType = Field(..., description="How the match was decided")
    winner_team_id: Optional[int] = Field(None, description="Winning team, if any")
    margin: Optional[int] = Field(None, ge=0, description="Margin in runs or wickets")
    description: str = Field(..., description="Human readable summary")
