"""Match model for the scoring database."""

from enum import Enum

from sqlalchemy import Column, String, Integer, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship

from .base import Base


class MatchStatus(str, Enum):
    """Enumeration of match lifecycle states."""
    SETUP = "setup"
    TOSS_DONE = "toss_done"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TossDecision(str, Enum):
    """What the toss winner elected to do."""
    BAT = "bat"
    BOWL = "bowl"


class Match(Base):
    """Match model holding setup parameters and the latest status summary.

    The ledger is authoritative; status, toss and result columns are rewritten
    from the replayed state after every accepted operation.
    """

    __tablename__ = "matches"

    title = Column(String(200), nullable=True)

    # Teams
    team_a_id = Column(Integer, nullable=False, index=True)
    team_b_id = Column(Integer, nullable=False, index=True)

    # Format
    balls_per_over = Column(Integer, default=6, nullable=False)
    overs_per_innings = Column(Integer, nullable=True)  # NULL = unlimited
    players_per_side = Column(Integer, default=11, nullable=False)

    # Lifecycle
    status = Column(SQLEnum(MatchStatus), default=MatchStatus.SETUP, nullable=False, index=True)
    current_innings = Column(Integer, default=0, nullable=False)

    # Toss
    toss_winner_id = Column(Integer, nullable=True)
    toss_decision = Column(SQLEnum(TossDecision), nullable=True)

    # Result
    winner_team_id = Column(Integer, nullable=True)
    result_type = Column(String(20), nullable=True)  # runs, wickets, tie, no_result
    win_margin = Column(Integer, nullable=True)
    result_description = Column(String(200), nullable=True)

    # Relationships
    innings = relationship(
        "Inning", back_populates="match", order_by="Inning.innings_number", cascade="all, delete-orphan"
    )
    ledger_entries = relationship(
        "LedgerEntryRecord", back_populates="match", order_by="LedgerEntryRecord.sequence",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_match_teams", "team_a_id", "team_b_id"),
    )

    @property
    def is_completed(self) -> bool:
        """Check if match is completed."""
        return self.status == MatchStatus.COMPLETED

    def __repr__(self) -> str:
        return f"<Match({self.id}, {self.title or 'untitled'}, {self.status.value if self.status else 'setup'})>"
