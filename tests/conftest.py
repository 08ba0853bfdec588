"""Shared fixtures for the scoring engine tests."""

import pytest

from cricket_scorer.config import ScoringSettings
from cricket_scorer.engine import ScoringEngine
from cricket_scorer.models.matches import TossDecision
from cricket_scorer.schemas import DeliveryOutcome, MatchCreate, MatchFormat

TEAM_A = 1
TEAM_B = 2

# Team A players are 101..111, team B players 201..211
OPENER_1, OPENER_2, NUMBER_3, NUMBER_4 = 101, 102, 103, 104
BOWLER_1, BOWLER_2, BOWLER_3 = 201, 202, 203
FIELDER = 205


@pytest.fixture
def scoring() -> ScoringSettings:
    return ScoringSettings(
        short_run_penalty_policy="always",
        short_run_penalty_runs=5,
        illegal_delivery_runs=1,
        verify_replay=True,
        recent_balls=12,
    )


@pytest.fixture
def engine(scoring: ScoringSettings) -> ScoringEngine:
    return ScoringEngine(scoring=scoring)


@pytest.fixture
def make_match(engine: ScoringEngine):
    """Create a match with team A batting first and innings 1 under way."""

    def _make(overs=20, players=11, balls_per_over=6, start=True) -> int:
        state = engine.create_match(MatchCreate(
            title="Test match",
            team_a_id=TEAM_A,
            team_b_id=TEAM_B,
            format=MatchFormat(
                balls_per_over=balls_per_over, overs_per_innings=overs, players_per_side=players
            ),
        ))
        engine.record_toss(state.match_id, TEAM_A, TossDecision.BAT)
        if start:
            engine.start_innings(state.match_id, 1, OPENER_1, OPENER_2, BOWLER_1)
        return state.match_id

    return _make


@pytest.fixture
def match_id(make_match) -> int:
    return make_match()


@pytest.fixture
def bowl(engine: ScoringEngine):
    """Submit deliveries to a match: ``bowl(match_id, 0, 1, 4)`` bowls a dot, a single and a four."""

    def _bowl(match_id: int, *runs: int, innings: int = 1):
        return [engine.submit_delivery(match_id, innings, DeliveryOutcome(runs=r)) for r in runs]

    return _bowl


def innings_of(engine: ScoringEngine, match_id: int, number: int = 1):
    return engine.get_match_state(match_id).match.get_innings(number)
