"""Scoring engine service.

``ScoringEngine`` is the entry point for every external operation. Calls for
the same match are serialized by a per-match lock; different matches proceed
in parallel. Each accepted operation becomes one ledger entry, is persisted
through the repository and then announced to subscribers as a ``StateChange``.
"""

import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union

from loguru import logger

from ..config import ScoringSettings, settings
from ..models.matches import TossDecision
from ..schemas.deliveries import AcceptedBall, DeliveryOutcome
from ..schemas.ledger import (
    BatterIn,
    BowlerChanged,
    DeliveryRecorded,
    InningsClosed,
    InningsStarted,
    MatchClosed,
    StrikeSwitched,
    TossRecorded,
)
from ..schemas.matches import MatchCreate, MatchResult
from ..schemas.state import InningsState, MatchExport, MatchSnapshot, MatchState, StateChange
from ..storage.repository import InMemoryMatchRepository, MatchRepository
from . import rules
from .dismissals import validate_replacement
from .errors import ConsistencyError, MatchQuarantined, RuleViolation
from .ledger import BallLedger
from .state_machine import apply_entry, new_match

Listener = Callable[[StateChange], None]


def _diff(live: Any, replayed: Any, path: str = "") -> Dict[str, Any]:
    """Paths at which two dumped states differ."""
    if isinstance(live, dict) and isinstance(replayed, dict):
        diverging = {}
        for key in sorted(set(live) | set(replayed), key=str):
            diverging.update(_diff(live.get(key), replayed.get(key), f"{path}.{key}" if path else str(key)))
        return diverging
    if isinstance(live, list) and isinstance(replayed, list) and len(live) == len(replayed):
        diverging = {}
        for index, (a, b) in enumerate(zip(live, replayed)):
            diverging.update(_diff(a, b, f"{path}[{index}]"))
        return diverging
    if live != replayed:
        return {path or "state": {"live": live, "replayed": replayed}}
    return {}


class ScoringEngine:
    """Ball-by-ball scoring for limited-overs matches."""

    def __init__(self, repository: Optional[MatchRepository] = None, scoring: Optional[ScoringSettings] = None):
        self.repository = repository or InMemoryMatchRepository()
        self.settings = scoring or settings.scoring
        self._registry_lock = threading.Lock()
        self._locks: Dict[int, threading.RLock] = {}
        self._ledgers: Dict[int, BallLedger] = {}
        self._states: Dict[int, MatchState] = {}
        self._quarantined: Dict[int, Dict[str, Any]] = {}
        self._listeners: List[Listener] = []

    # Plumbing

    def _lock_for(self, match_id: int) -> threading.RLock:
        with self._registry_lock:
            lock = self._locks.get(match_id)
            if lock is None:
                lock = self._locks[match_id] = threading.RLock()
            return lock

    def _aggregate(self, match_id: int) -> Tuple[BallLedger, MatchState]:
        """Cached ledger and state of a match, rebuilt from storage on first use."""
        if match_id not in self._ledgers:
            setup, entries = self.repository.load(match_id)
            ledger = BallLedger(match_id, setup, entries)
            self._states[match_id] = ledger.replay()
            self._ledgers[match_id] = ledger
            logger.debug(f"Rebuilt match {match_id} from {len(entries)} ledger entries")
        return self._ledgers[match_id], self._states[match_id]

    @contextmanager
    def _match(self, match_id: int) -> Iterator[Tuple[BallLedger, MatchState]]:
        with self._lock_for(match_id):
            if match_id in self._quarantined:
                raise MatchQuarantined(match_id, self._quarantined[match_id])
            yield self._aggregate(match_id)

    def _check_consistency(self, match_id: int, live: MatchState, replayed: MatchState) -> None:
        live_dump, replayed_dump = live.model_dump(mode="json"), replayed.model_dump(mode="json")
        if live_dump == replayed_dump:
            return
        diverging = _diff(live_dump, replayed_dump)
        self._quarantined[match_id] = diverging
        logger.error(f"Match {match_id} quarantined; replay diverges at: {', '.join(diverging)}")
        raise ConsistencyError(match_id, diverging)

    def _commit(self, match_id: int, ledger: BallLedger, state: MatchState, entry) -> MatchState:
        """Apply, verify, persist and publish one entry; the aggregate changes only on success."""
        ledger.stamp(entry)
        new_state = state.model_copy(deep=True)
        apply_entry(new_state, entry)
        if self.settings.verify_replay:
            try:
                replayed = ledger.replay(ledger.entries + [entry])
            except ValueError as e:
                self._quarantined[match_id] = {"replay": str(e)}
                logger.error(f"Match {match_id} quarantined; ledger no longer replays: {e}")
                raise ConsistencyError(match_id, self._quarantined[match_id]) from e
            self._check_consistency(match_id, new_state, replayed)

        self.repository.append(match_id, entry, new_state)
        ledger.append(entry)
        self._states[match_id] = new_state
        return new_state

    def _reject(self, match_id: int, operation: str, error: RuleViolation) -> None:
        logger.debug(f"Match {match_id}: {operation} rejected ({error.rule}): {error.detail}")

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for state changes; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(
        self, event: str, state: MatchState, innings_number: int, ball: Optional[AcceptedBall] = None
    ) -> StateChange:
        # Listeners get copies; nothing they hold may alias the ledger or live state
        innings = state.get_innings(innings_number) or state.current
        change = StateChange(
            event=event,
            match_id=state.match_id,
            innings_number=innings.innings_number if innings else innings_number,
            sequence=state.last_sequence,
            match_status=state.status,
            match_completed=state.is_completed,
            result=state.result.model_copy(deep=True) if state.result else None,
            ball=ball.model_copy(deep=True) if ball else None,
        )
        if innings is not None:
            change.innings_status = innings.status
            change.runs = innings.runs
            change.wickets = innings.wickets
            change.overs = innings.overs_display
            change.target = innings.target
            change.striker_id = innings.striker_id
            change.non_striker_id = innings.non_striker_id
            change.bowler_id = innings.current_bowler_id
            change.current_over = innings.current_over.model_copy(deep=True) if innings.current_over else None
            change.awaiting_bowler = innings.awaiting_bowler
            change.awaiting_replacement = innings.awaiting_replacement is not None
            change.innings_completed = innings.is_complete

        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception as e:
                logger.exception(f"State change listener failed for match {state.match_id}: {e}")
        return change

    def _snapshot(self, ledger: BallLedger, state: MatchState) -> MatchSnapshot:
        state = state.model_copy(deep=True)
        innings = state.current
        snapshot = MatchSnapshot(match=state, current_innings=innings)
        if innings is None:
            return snapshot
        snapshot.current_over = innings.current_over
        snapshot.striker = innings.stats.batting.get(innings.striker_id)
        snapshot.non_striker = innings.stats.batting.get(innings.non_striker_id)
        snapshot.bowler = innings.stats.bowling.get(innings.current_bowler_id)
        snapshot.recent_balls = [
            ball.model_copy(deep=True) for ball in ledger.recent_balls(innings.innings_number, self.settings.recent_balls)
        ]
        return snapshot

    # Operations

    def create_match(self, setup: Union[MatchCreate, dict]) -> MatchState:
        """Register a new match in setup status and return its initial state."""
        if isinstance(setup, dict):
            setup = MatchCreate.model_validate(setup)
        match_id = self.repository.create_match(setup)
        with self._lock_for(match_id):
            ledger = BallLedger(match_id, setup)
            state = new_match(match_id, setup)
            self._ledgers[match_id] = ledger
            self._states[match_id] = state
        logger.info(f"Created match {match_id}: team {setup.team_a_id} v team {setup.team_b_id}")
        return state.model_copy(deep=True)

    def record_toss(self, match_id: int, winner_team_id: int, decision: TossDecision) -> StateChange:
        """Record the toss; the batting order of both innings follows from it."""
        decision = TossDecision(decision)
        with self._match(match_id) as (ledger, state):
            try:
                rules.validate_toss(state, winner_team_id, decision)
            except RuleViolation as e:
                self._reject(match_id, "toss", e)
                raise
            state = self._commit(match_id, ledger, state, TossRecorded(
                innings_number=1, winner_team_id=winner_team_id, decision=decision
            ))
            logger.info(f"Match {match_id}: team {winner_team_id} won the toss and chose to {decision.value}")
            return self._notify("toss", state, 1)

    def start_innings(
        self, match_id: int, innings_number: int, striker_id: int, non_striker_id: int, bowler_id: int
    ) -> StateChange:
        """Open an innings with its two batters and the bowler of the first over."""
        with self._match(match_id) as (ledger, state):
            try:
                rules.validate_innings_start(state, innings_number, striker_id, non_striker_id, bowler_id)
            except RuleViolation as e:
                self._reject(match_id, "start_innings", e)
                raise
            state = self._commit(match_id, ledger, state, InningsStarted(
                innings_number=innings_number,
                striker_id=striker_id,
                non_striker_id=non_striker_id,
                bowler_id=bowler_id,
            ))
            logger.info(f"Match {match_id}: innings {innings_number} started")
            return self._notify("innings_started", state, innings_number)

    def submit_delivery(
        self, match_id: int, innings_number: int, outcome: Union[DeliveryOutcome, dict]
    ) -> AcceptedBall:
        """Validate and record one delivery; returns the accepted, annotated ball."""
        if isinstance(outcome, dict):
            outcome = DeliveryOutcome.model_validate(outcome)
        with self._match(match_id) as (ledger, state):
            try:
                ball = rules.validate_delivery(state, innings_number, outcome, self.settings)
            except RuleViolation as e:
                self._reject(match_id, "delivery", e)
                raise
            state = self._commit(match_id, ledger, state, DeliveryRecorded(innings_number=innings_number, ball=ball))
            innings = state.get_innings(innings_number)
            logger.info(
                f"Match {match_id} {ball.over_number}.{ball.ball_in_over}: {ball.label} "
                f"({innings.runs}/{innings.wickets} in {innings.overs_display})"
            )
            if innings.is_complete:
                logger.info(
                    f"Match {match_id}: innings {innings_number} complete ({innings.completion_reason.value})"
                )
            if state.is_completed:
                logger.info(f"Match {match_id}: {state.result.description}")
            self._notify("delivery", state, innings_number, ball=ball)
            return ball.model_copy(deep=True)

    def undo_last_delivery(self, match_id: int, innings_number: int) -> MatchSnapshot:
        """Remove the innings' last delivery and everything recorded after it."""
        with self._match(match_id) as (ledger, state):
            remaining = ledger.without_last_delivery(innings_number)
            removed = ledger.entries[len(remaining):]
            new_state = ledger.replay(remaining)
            self.repository.truncate(match_id, removed[0].sequence, new_state)
            ledger.truncate(len(remaining))
            self._states[match_id] = new_state
            logger.info(
                f"Match {match_id}: undid delivery #{removed[0].sequence} of innings {innings_number} "
                f"({len(removed)} ledger entries removed)"
            )
            self._notify("delivery_undone", new_state, innings_number)
            return self._snapshot(ledger, new_state)

    def change_bowler(self, match_id: int, innings_number: int, bowler_id: int) -> StateChange:
        """Name the bowler of the next over, or replace the bowler of an over not yet begun."""
        with self._match(match_id) as (ledger, state):
            try:
                rules.validate_bowler_change(state, innings_number, bowler_id)
            except RuleViolation as e:
                self._reject(match_id, "change_bowler", e)
                raise
            state = self._commit(match_id, ledger, state, BowlerChanged(
                innings_number=innings_number, bowler_id=bowler_id
            ))
            logger.info(f"Match {match_id}: bowler {bowler_id} to bowl over {state.get_innings(innings_number).over_number}")
            return self._notify("bowler_changed", state, innings_number)

    def select_replacement_batter(self, match_id: int, innings_number: int, player_id: int) -> StateChange:
        """Send in the batter who replaces the one just dismissed."""
        with self._match(match_id) as (ledger, state):
            try:
                validate_replacement(state, innings_number, player_id)
            except RuleViolation as e:
                self._reject(match_id, "select_replacement_batter", e)
                raise
            state = self._commit(match_id, ledger, state, BatterIn(
                innings_number=innings_number, player_id=player_id
            ))
            logger.info(f"Match {match_id}: player {player_id} comes in to bat")
            return self._notify("batter_in", state, innings_number)

    def switch_strike(self, match_id: int, innings_number: int) -> StateChange:
        """Swap striker and non-striker by hand, e.g. after the batters crossed on a catch."""
        with self._match(match_id) as (ledger, state):
            try:
                rules.validate_strike_switch(state, innings_number)
            except RuleViolation as e:
                self._reject(match_id, "switch_strike", e)
                raise
            state = self._commit(match_id, ledger, state, StrikeSwitched(innings_number=innings_number))
            logger.info(f"Match {match_id}: strike switched")
            return self._notify("strike_switched", state, innings_number)

    def end_innings(self, match_id: int, innings_number: int) -> InningsState:
        """Close the innings in progress early; returns the closed innings."""
        with self._match(match_id) as (ledger, state):
            try:
                rules.validate_close_innings(state, innings_number)
            except RuleViolation as e:
                self._reject(match_id, "end_innings", e)
                raise
            state = self._commit(match_id, ledger, state, InningsClosed(innings_number=innings_number))
            innings = state.get_innings(innings_number)
            logger.info(f"Match {match_id}: innings {innings_number} closed at {innings.runs}/{innings.wickets}")
            self._notify("innings_closed", state, innings_number)
            return innings.model_copy(deep=True)

    def end_match(self, match_id: int, note: Optional[str] = None) -> MatchResult:
        """Stop the match; a match ended before it is decided has no result."""
        with self._match(match_id) as (ledger, state):
            try:
                rules.validate_close_match(state)
            except RuleViolation as e:
                self._reject(match_id, "end_match", e)
                raise
            state = self._commit(match_id, ledger, state, MatchClosed(
                innings_number=state.current_innings, note=note
            ))
            logger.info(f"Match {match_id} ended: {state.result.description}")
            self._notify("match_closed", state, state.current_innings)
            return state.result.model_copy(deep=True)

    def get_match_state(self, match_id: int) -> MatchSnapshot:
        """Scoreboard view of a match. The snapshot is a copy and safe to modify."""
        with self._match(match_id) as (ledger, state):
            return self._snapshot(ledger, state)

    def export_match(self, match_id: int) -> MatchExport:
        """Setup, full ledger and current snapshot of a match, for archiving.

        Replaying the exported entries over the exported setup gives back the
        snapshot's match state exactly.
        """
        with self._match(match_id) as (ledger, state):
            export = MatchExport(
                match_id=match_id,
                setup=ledger.setup.model_copy(deep=True),
                entries=[entry.model_dump(mode="json") for entry in ledger.entries],
                snapshot=self._snapshot(ledger, state),
            )
            logger.info(f"Exported match {match_id} at ledger sequence {ledger.last_sequence}")
            return export

    def verify_match(self, match_id: int, repair: bool = False) -> MatchState:
        """Replay the stored ledger and compare it with the live state.

        With ``repair`` a quarantined match is rebuilt from its ledger and
        released.
        """
        with self._lock_for(match_id):
            if match_id in self._quarantined and not repair:
                raise MatchQuarantined(match_id, self._quarantined[match_id])
            setup, entries = self.repository.load(match_id)
            ledger = BallLedger(match_id, setup, entries)
            replayed = ledger.replay()
            if repair:
                self._quarantined.pop(match_id, None)
                self._ledgers[match_id] = ledger
                self._states[match_id] = replayed
                logger.info(f"Match {match_id} rebuilt from {len(entries)} ledger entries")
                return replayed.model_copy(deep=True)

            _, live = self._aggregate(match_id)
            self._check_consistency(match_id, live, replayed)
            logger.info(f"Match {match_id} verified against {len(entries)} ledger entries")
            return replayed

    def list_matches(self) -> List[int]:
        """Ids of all stored matches, oldest first."""
        return self.repository.match_ids()
