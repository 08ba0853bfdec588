"""Tests for undo and ledger replay."""

import pytest

from cricket_scorer.engine import ConsistencyError, MatchQuarantined, NothingToUndo, UndoNotPermitted
from cricket_scorer.engine.ledger import BallLedger
from cricket_scorer.models.innings import InningStatus
from cricket_scorer.models.matches import MatchStatus
from cricket_scorer.schemas import DeliveryOutcome, Dismissal, DismissalType, ExtraType, MatchExport, parse_entries

from conftest import BOWLER_1, BOWLER_2, NUMBER_3, OPENER_1, OPENER_2, innings_of

OUTCOMES = [
    DeliveryOutcome(),
    DeliveryOutcome(runs=1),
    DeliveryOutcome(runs=4),
    DeliveryOutcome(extra_type=ExtraType.WIDE, extra_runs=4),
    DeliveryOutcome(runs=2, extra_type=ExtraType.NO_BALL),
    DeliveryOutcome(extra_type=ExtraType.LEG_BYE, extra_runs=1),
    DeliveryOutcome(extra_type=ExtraType.PENALTY, penalty_runs=5),
    DeliveryOutcome(dead_ball=True),
    DeliveryOutcome(runs=3, short_runs=1),
    DeliveryOutcome(runs=2, short_runs=1, deliberate_short_run=True),
    DeliveryOutcome(dismissal=Dismissal(dismissal_type=DismissalType.BOWLED, player_out_id=OPENER_2)),
    DeliveryOutcome(runs=1, dismissal=Dismissal(
        dismissal_type=DismissalType.RUN_OUT, player_out_id=OPENER_1, fielder_id=207
    )),
]


class TestUndo:
    @pytest.mark.parametrize("outcome", OUTCOMES, ids=lambda o: o.model_dump_json(exclude_defaults=True))
    def test_submit_then_undo_restores_state(self, engine, match_id, bowl, outcome):
        bowl(match_id, 1, 2)
        before = engine.get_match_state(match_id).model_dump()

        engine.submit_delivery(match_id, 1, outcome)
        snapshot = engine.undo_last_delivery(match_id, 1)

        assert snapshot.model_dump() == before
        assert engine.get_match_state(match_id).model_dump() == before

    def test_undo_removes_bowler_change_that_followed(self, engine, match_id, bowl):
        bowl(match_id, 0, 0, 0, 0, 0)
        before = engine.get_match_state(match_id).model_dump()
        bowl(match_id, 0)
        engine.change_bowler(match_id, 1, BOWLER_2)

        engine.undo_last_delivery(match_id, 1)
        innings = innings_of(engine, match_id)
        assert len(innings.overs) == 1
        assert innings.current_bowler_id == BOWLER_1
        assert not innings.awaiting_bowler
        assert engine.get_match_state(match_id).model_dump() == before

    def test_undo_removes_replacement_batter(self, engine, match_id):
        engine.submit_delivery(match_id, 1, DeliveryOutcome(
            dismissal=Dismissal(dismissal_type=DismissalType.LBW, player_out_id=OPENER_1)
        ))
        engine.select_replacement_batter(match_id, 1, NUMBER_3)

        engine.undo_last_delivery(match_id, 1)
        innings = innings_of(engine, match_id)
        assert innings.striker_id == OPENER_1
        assert innings.wickets == 0
        assert NUMBER_3 not in innings.stats.batting
        assert BOWLER_1 not in innings.stats.bowling

    def test_undo_reopens_completed_innings(self, engine, make_match, bowl):
        match_id = make_match(overs=1)
        bowl(match_id, 0, 0, 0, 0, 0, 4)
        assert innings_of(engine, match_id, 2) is not None

        engine.undo_last_delivery(match_id, 1)
        state = engine.get_match_state(match_id).match
        assert state.get_innings(2) is None
        assert state.current_innings == 1
        assert state.get_innings(1).status == InningStatus.IN_PROGRESS
        bowl(match_id, 1)
        assert innings_of(engine, match_id, 2).target == 2

    def test_undo_reopens_completed_match(self, engine, make_match, bowl):
        match_id = make_match(overs=1)
        bowl(match_id, 1, 0, 0, 0, 0, 0)
        engine.start_innings(match_id, 2, 201, 202, OPENER_1)
        bowl(match_id, 2, innings=2)
        assert engine.get_match_state(match_id).match.status == MatchStatus.COMPLETED

        engine.undo_last_delivery(match_id, 2)
        state = engine.get_match_state(match_id).match
        assert state.status == MatchStatus.IN_PROGRESS
        assert state.result is None
        assert state.get_innings(2).runs == 0

    def test_nothing_to_undo(self, engine, match_id, bowl):
        with pytest.raises(NothingToUndo):
            engine.undo_last_delivery(match_id, 1)

        bowl(match_id, 1)
        engine.undo_last_delivery(match_id, 1)
        with pytest.raises(NothingToUndo):
            engine.undo_last_delivery(match_id, 1)

    def test_only_latest_delivery_of_match(self, engine, make_match, bowl):
        match_id = make_match(overs=1)
        bowl(match_id, 0, 0, 0, 0, 0, 0)
        engine.start_innings(match_id, 2, 201, 202, OPENER_1)
        bowl(match_id, 0, innings=2)

        with pytest.raises(UndoNotPermitted):
            engine.undo_last_delivery(match_id, 1)

    def test_no_redo_sequence_reused(self, engine, match_id, bowl):
        bowl(match_id, 1)
        sequence = engine.get_match_state(match_id).match.last_sequence
        engine.undo_last_delivery(match_id, 1)
        bowl(match_id, 2)
        state = engine.get_match_state(match_id).match
        assert state.last_sequence == sequence
        assert state.current.runs == 2


class TestReplay:
    def test_replay_matches_incremental_state(self, engine, match_id, bowl):
        bowl(match_id, 1, 4, 0, 6, 2, 0)
        engine.change_bowler(match_id, 1, BOWLER_2)
        engine.submit_delivery(match_id, 1, DeliveryOutcome(extra_type=ExtraType.WIDE))
        engine.submit_delivery(match_id, 1, DeliveryOutcome(
            dismissal=Dismissal(dismissal_type=DismissalType.CAUGHT, player_out_id=OPENER_1, fielder_id=209)
        ))
        engine.select_replacement_batter(match_id, 1, NUMBER_3)
        bowl(match_id, 3)

        replayed = engine.verify_match(match_id)
        live = engine.get_match_state(match_id).match
        assert replayed.model_dump() == live.model_dump()
        assert replayed.get_innings(1).stats == live.get_innings(1).stats

    def test_divergence_quarantines_match(self, engine, match_id, bowl):
        bowl(match_id, 1, 1)
        engine._states[match_id].get_innings(1).runs += 50

        with pytest.raises(ConsistencyError) as exc:
            engine.verify_match(match_id)
        assert "innings[0].runs" in exc.value.diverging

        with pytest.raises(MatchQuarantined):
            bowl(match_id, 0)
        with pytest.raises(MatchQuarantined):
            engine.get_match_state(match_id)

        repaired = engine.verify_match(match_id, repair=True)
        assert repaired.get_innings(1).runs == 2
        bowl(match_id, 0)
        assert innings_of(engine, match_id).legal_balls == 3

    def test_ledger_that_no_longer_replays_quarantines_match(self, engine, match_id, bowl):
        engine.submit_delivery(match_id, 1, DeliveryOutcome(
            dismissal=Dismissal(dismissal_type=DismissalType.BOWLED, player_out_id=OPENER_1)
        ))
        engine.select_replacement_batter(match_id, 1, NUMBER_3)
        wicket = next(e for e in engine._ledgers[match_id].entries if e.kind == "delivery")
        wicket.ball.dismissal.player_out_id = 999

        with pytest.raises(ConsistencyError) as exc:
            bowl(match_id, 0)
        assert "replay" in exc.value.diverging
        with pytest.raises(MatchQuarantined):
            bowl(match_id, 0)


class TestExport:
    def play(self, engine, match_id, bowl):
        bowl(match_id, 1, 4, 0, 6, 2, 0)
        engine.change_bowler(match_id, 1, BOWLER_2)
        engine.submit_delivery(match_id, 1, DeliveryOutcome(extra_type=ExtraType.NO_BALL, runs=1))
        engine.submit_delivery(match_id, 1, DeliveryOutcome(
            dismissal=Dismissal(dismissal_type=DismissalType.CAUGHT, player_out_id=OPENER_1, fielder_id=209)
        ))
        engine.select_replacement_batter(match_id, 1, NUMBER_3)

    def test_export_replays_to_the_same_state(self, engine, match_id, bowl):
        self.play(engine, match_id, bowl)
        export = engine.export_match(match_id)

        assert export.match_id == match_id
        assert [entry["sequence"] for entry in export.entries] == list(range(1, len(export.entries) + 1))
        assert export.entries[0]["kind"] == "toss"

        rebuilt = BallLedger(export.match_id, export.setup, parse_entries(export.entries)).replay()
        assert rebuilt.model_dump() == engine.get_match_state(match_id).match.model_dump()
        assert rebuilt.model_dump() == export.snapshot.match.model_dump()

    def test_export_survives_json(self, engine, match_id, bowl):
        self.play(engine, match_id, bowl)
        export = engine.export_match(match_id)

        restored = MatchExport.model_validate_json(export.model_dump_json())
        rebuilt = BallLedger(restored.match_id, restored.setup, parse_entries(restored.entries)).replay()
        assert rebuilt.model_dump(mode="json") == export.snapshot.match.model_dump(mode="json")
        assert [b.label for b in restored.snapshot.recent_balls] == [b.label for b in export.snapshot.recent_balls]

    def test_export_is_detached_from_the_match(self, engine, match_id, bowl):
        bowl(match_id, 4)
        export = engine.export_match(match_id)
        export.entries[-1]["ball"]["runs_off_bat"] = 0
        export.snapshot.match.get_innings(1).runs = 0

        assert innings_of(engine, match_id).runs == 4
        engine.verify_match(match_id)
