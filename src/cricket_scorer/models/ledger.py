"""Ledger entry model: the ordered, append-mostly record of a match."""

from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, Index, Text, JSON
from sqlalchemy.orm import relationship

from .base import Base


class LedgerEntryRecord(Base):
    """One ledger entry. Deliveries carry the full ball in denormalized columns.

    ``payload`` holds the complete entry as JSON and is what replay reads; the
    ball columns exist for querying and reporting.
    """

    __tablename__ = "ledger_entries"

    # Ordering
    match_id = Column(Integer, ForeignKey("matches.id"), nullable=False, index=True)
    sequence = Column(Integer, nullable=False)
    innings_number = Column(Integer, nullable=False, index=True)
    kind = Column(String(30), nullable=False, index=True)

    # Ball position (deliveries only)
    over_number = Column(Integer, nullable=True)
    ball_in_over = Column(Integer, nullable=True)  # every delivery, legal or not
    legal_ball_in_over = Column(Integer, nullable=True)

    # Players involved
    striker_id = Column(Integer, nullable=True, index=True)
    non_striker_id = Column(Integer, nullable=True)
    bowler_id = Column(Integer, nullable=True, index=True)

    # Ball outcome
    runs_off_bat = Column(Integer, nullable=True)
    extra_type = Column(String(20), nullable=True, index=True)
    extra_runs = Column(Integer, nullable=True)
    penalty_runs = Column(Integer, nullable=True)
    fielding_penalty_runs = Column(Integer, nullable=True)
    total_runs = Column(Integer, nullable=True)
    is_legal = Column(Boolean, nullable=True)
    is_dead_ball = Column(Boolean, nullable=True)
    short_runs = Column(Integer, nullable=True)
    deliberate_short_run = Column(Boolean, nullable=True)

    # Dismissal
    is_wicket = Column(Boolean, default=False, nullable=False, index=True)
    wicket_type = Column(String(20), nullable=True)
    dismissed_player_id = Column(Integer, nullable=True)
    fielder_id = Column(Integer, nullable=True)

    commentary = Column(Text, nullable=True)
    payload = Column(JSON, nullable=False)

    match = relationship("Match", back_populates="ledger_entries")

    __table_args__ = (
        Index("idx_ledger_match_sequence", "match_id", "sequence", unique=True),
        Index("idx_ledger_innings_over", "match_id", "innings_number", "over_number", "ball_in_over"),
        Index("idx_ledger_bowler", "bowler_id", "is_wicket"),
    )

    def __repr__(self) -> str:
        if self.kind == "delivery":
            return f"<LedgerEntry(#{self.sequence} {self.over_number}.{self.ball_in_over}, {self.total_runs} runs{', W' if self.is_wicket else ''})>"
        return f"<LedgerEntry(#{self.sequence} {self.kind})>"
