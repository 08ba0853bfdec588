"""Inning summary rows, rewritten from the replayed match state."""

from enum import Enum

from sqlalchemy import Column, Integer, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship

from .base import Base


class InningStatus(str, Enum):
    """Where an innings is in its lifecycle."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class CompletionReason(str, Enum):
    """Why an innings ended."""
    ALL_OUT = "all_out"
    OVERS_EXHAUSTED = "overs_exhausted"
    TARGET_REACHED = "target_reached"
    CLOSED = "closed"
    MATCH_ENDED = "match_ended"


class Inning(Base):
    """Running totals and crease positions of one batting turn.

    Rows are derived data: the second innings row appears when the first
    innings completes and disappears again if that completion is undone.
    """

    __tablename__ = "innings"

    match_id = Column(Integer, ForeignKey("matches.id"), nullable=False, index=True)
    innings_number = Column(Integer, nullable=False)
    batting_team_id = Column(Integer, nullable=False, index=True)
    bowling_team_id = Column(Integer, nullable=False, index=True)

    status = Column(SQLEnum(InningStatus), nullable=False)
    completion_reason = Column(SQLEnum(CompletionReason), nullable=True)
    target = Column(Integer, nullable=True)  # chase only

    # Totals; legal_balls drives the overs display
    runs_scored = Column(Integer, default=0, nullable=False)
    wickets_lost = Column(Integer, default=0, nullable=False)
    legal_balls = Column(Integer, default=0, nullable=False)
    balls_per_over = Column(Integer, default=6, nullable=False)

    byes = Column(Integer, default=0, nullable=False)
    leg_byes = Column(Integer, default=0, nullable=False)
    wides = Column(Integer, default=0, nullable=False)
    no_balls = Column(Integer, default=0, nullable=False)
    penalty_runs = Column(Integer, default=0, nullable=False)

    # Who is at the crease and bowling right now
    striker_id = Column(Integer, nullable=True)
    non_striker_id = Column(Integer, nullable=True)
    bowler_id = Column(Integer, nullable=True)

    match = relationship("Match", back_populates="innings")

    __table_args__ = (
        Index("idx_inning_match_number", "match_id", "innings_number", unique=True),
        Index("idx_inning_status", "status"),
    )

    @property
    def overs(self) -> str:
        """Completed overs and balls, e.g. ``"4.3"``."""
        per_over = self.balls_per_over or 6
        return f"{self.legal_balls // per_over}.{self.legal_balls % per_over}"

    def __repr__(self) -> str:
        return (
            f"<Inning({self.innings_number}, match={self.match_id}, "
            f"{self.runs_scored}/{self.wickets_lost} in {self.overs})>"
        )
