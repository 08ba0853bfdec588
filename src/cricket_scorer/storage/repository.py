"""Ledger repositories.

A repository persists the match setup and its ordered ledger entries. The
SQL repository also keeps the ``matches`` and ``innings`` summary rows in step
with the replayed state so the database can be queried without replaying.
"""

import itertools
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from ..database import get_session_local, session_scope
from ..engine.errors import MatchNotFound
from ..models import Inning, LedgerEntryRecord, Match
from ..schemas.ledger import parse_entries
from ..schemas.matches import MatchCreate, MatchFormat
from ..schemas.state import MatchState


class MatchRepository(ABC):
    """Storage interface used by the scoring engine."""

    @abstractmethod
    def create_match(self, setup: MatchCreate) -> int:
        """Persist a new match and return its id."""

    @abstractmethod
    def load(self, match_id: int) -> Tuple[MatchCreate, List]:
        """Return the setup and the ledger entries in sequence order."""

    @abstractmethod
    def append(self, match_id: int, entry, state: MatchState) -> None:
        """Append one entry; ``state`` is the match state after it."""

    @abstractmethod
    def truncate(self, match_id: int, from_sequence: int, state: MatchState) -> None:
        """Remove entries with ``sequence >= from_sequence``; ``state`` is the state after removal."""

    @abstractmethod
    def match_ids(self) -> List[int]:
        """Ids of every stored match."""


class InMemoryMatchRepository(MatchRepository):
    """Process-local repository; the default for embedding and tests."""

    def __init__(self):
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._setups: Dict[int, MatchCreate] = {}
        self._entries: Dict[int, List] = {}

    def create_match(self, setup: MatchCreate) -> int:
        with self._lock:
            match_id = next(self._ids)
            self._setups[match_id] = setup.model_copy(deep=True)
            self._entries[match_id] = []
        return match_id

    def load(self, match_id: int) -> Tuple[MatchCreate, List]:
        if match_id not in self._setups:
            raise MatchNotFound(match_id)
        return (
            self._setups[match_id].model_copy(deep=True),
            [entry.model_copy(deep=True) for entry in self._entries[match_id]],
        )

    def append(self, match_id: int, entry, state: MatchState) -> None:
        if match_id not in self._entries:
            raise MatchNotFound(match_id)
        self._entries[match_id].append(entry.model_copy(deep=True))

    def truncate(self, match_id: int, from_sequence: int, state: MatchState) -> None:
        if match_id not in self._entries:
            raise MatchNotFound(match_id)
        self._entries[match_id] = [e for e in self._entries[match_id] if e.sequence < from_sequence]

    def match_ids(self) -> List[int]:
        return sorted(self._setups)


def _record_for(match_id: int, entry) -> LedgerEntryRecord:
    record = LedgerEntryRecord(
        match_id=match_id,
        sequence=entry.sequence,
        innings_number=entry.innings_number,
        kind=entry.kind,
        payload=entry.model_dump(mode="json"),
    )
    if entry.kind != "delivery":
        return record

    ball = entry.ball
    record.over_number = ball.over_number
    record.ball_in_over = ball.ball_in_over
    record.legal_ball_in_over = ball.legal_ball_in_over
    record.striker_id = ball.striker_id
    record.non_striker_id = ball.non_striker_id
    record.bowler_id = ball.bowler_id
    record.runs_off_bat = ball.runs_off_bat
    record.extra_type = ball.extra_type.value
    record.extra_runs = ball.extras - ball.penalty_runs
    record.penalty_runs = ball.penalty_runs
    record.fielding_penalty_runs = ball.fielding_penalty_runs
    record.total_runs = ball.total_runs
    record.is_legal = ball.is_legal
    record.is_dead_ball = ball.is_dead_ball
    record.short_runs = ball.short_runs
    record.deliberate_short_run = ball.deliberate_short_run
    record.is_wicket = ball.is_wicket
    record.commentary = ball.commentary
    if ball.dismissal is not None:
        record.wicket_type = ball.dismissal.dismissal_type.value
        record.dismissed_player_id = ball.dismissal.player_out_id
        record.fielder_id = ball.dismissal.fielder_id
    return record


class SqlMatchRepository(MatchRepository):
    """SQLAlchemy-backed repository; one transaction per operation."""

    def __init__(self, session_local: Optional[sessionmaker] = None):
        self._session_local = session_local

    @property
    def session_local(self) -> sessionmaker:
        return self._session_local or get_session_local()

    def create_match(self, setup: MatchCreate) -> int:
        with session_scope(self.session_local) as session:
            match = Match(
                title=setup.title,
                team_a_id=setup.team_a_id,
                team_b_id=setup.team_b_id,
                balls_per_over=setup.format.balls_per_over,
                overs_per_innings=setup.format.overs_per_innings,
                players_per_side=setup.format.players_per_side,
            )
            session.add(match)
            session.flush()
            match_id = match.id
        logger.info(f"Stored match {match_id} ({setup.team_a_id} v {setup.team_b_id})")
        return match_id

    def _get_match(self, session: Session, match_id: int) -> Match:
        match = session.get(Match, match_id)
        if match is None:
            raise MatchNotFound(match_id)
        return match

    def load(self, match_id: int) -> Tuple[MatchCreate, List]:
        with session_scope(self.session_local) as session:
            match = self._get_match(session, match_id)
            setup = MatchCreate(
                title=match.title,
                team_a_id=match.team_a_id,
                team_b_id=match.team_b_id,
                format=MatchFormat(
                    balls_per_over=match.balls_per_over,
                    overs_per_innings=match.overs_per_innings,
                    players_per_side=match.players_per_side,
                ),
            )
            rows = session.scalars(
                select(LedgerEntryRecord)
                .where(LedgerEntryRecord.match_id == match_id)
                .order_by(LedgerEntryRecord.sequence)
            ).all()
            entries = parse_entries([row.payload for row in rows])
        logger.debug(f"Loaded match {match_id} with {len(entries)} ledger entries")
        return setup, entries

    def append(self, match_id: int, entry, state: MatchState) -> None:
        with session_scope(self.session_local) as session:
            match = self._get_match(session, match_id)
            session.add(_record_for(match_id, entry))
            self._sync_summary(match, state)

    def truncate(self, match_id: int, from_sequence: int, state: MatchState) -> None:
        with session_scope(self.session_local) as session:
            match = self._get_match(session, match_id)
            result = session.execute(
                delete(LedgerEntryRecord)
                .where(LedgerEntryRecord.match_id == match_id)
                .where(LedgerEntryRecord.sequence >= from_sequence)
                .execution_options(synchronize_session=False)
            )
            self._sync_summary(match, state)
        logger.debug(f"Removed {result.rowcount} ledger entries from match {match_id} (sequence >= {from_sequence})")

    def match_ids(self) -> List[int]:
        with session_scope(self.session_local) as session:
            return list(session.scalars(select(Match.id).order_by(Match.id)).all())

    def _sync_summary(self, match: Match, state: MatchState) -> None:
        """Rewrite the summary columns from the replayed state."""
        toss, result = state.toss, state.result
        match.assign(
            status=state.status,
            current_innings=state.current_innings,
            toss_winner_id=toss.winner_team_id if toss else None,
            toss_decision=toss.decision if toss else None,
            winner_team_id=result.winner_team_id if result else None,
            result_type=result.result_type.value if result else None,
            win_margin=result.margin if result else None,
            result_description=result.description if result else None,
        )

        existing = {row.innings_number: row for row in match.innings}
        for innings in state.innings:
            row = existing.pop(innings.innings_number, None)
            if row is None:
                row = Inning(match_id=match.id, innings_number=innings.innings_number)
                match.innings.append(row)
            row.assign(
                batting_team_id=innings.batting_team_id,
                bowling_team_id=innings.bowling_team_id,
                status=innings.status,
                completion_reason=innings.completion_reason,
                target=innings.target,
                runs_scored=innings.runs,
                wickets_lost=innings.wickets,
                legal_balls=innings.legal_balls,
                balls_per_over=innings.balls_per_over,
                byes=innings.extras.byes,
                leg_byes=innings.extras.leg_byes,
                wides=innings.extras.wides,
                no_balls=innings.extras.no_balls,
                penalty_runs=innings.extras.penalties,
                striker_id=innings.striker_id,
                non_striker_id=innings.non_striker_id,
                bowler_id=innings.current_bowler_id,
            )

        # Innings undone out of existence (an automatically opened second innings)
        for row in existing.values():
            match.innings.remove(row)
