"""Tests for the SQL ledger repository on in-memory SQLite."""

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cricket_scorer.engine import MatchNotFound, ScoringEngine
from cricket_scorer.models import Base, Inning, InningStatus, LedgerEntryRecord, Match, MatchStatus
from cricket_scorer.models.matches import TossDecision
from cricket_scorer.schemas import DeliveryOutcome, Dismissal, DismissalType, ExtraType, MatchCreate, MatchFormat
from cricket_scorer.storage import SqlMatchRepository

from conftest import BOWLER_1, NUMBER_3, OPENER_1, OPENER_2, TEAM_A, TEAM_B


@pytest.fixture
def session_local():
    db = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=db)
    yield sessionmaker(autocommit=False, autoflush=False, bind=db)
    db.dispose()


@pytest.fixture
def repository(session_local):
    return SqlMatchRepository(session_local)


@pytest.fixture
def sql_engine(repository, scoring):
    return ScoringEngine(repository=repository, scoring=scoring)


@pytest.fixture
def sql_match(sql_engine):
    state = sql_engine.create_match(MatchCreate(
        title="Stored match", team_a_id=TEAM_A, team_b_id=TEAM_B, format=MatchFormat(overs_per_innings=1)
    ))
    sql_engine.record_toss(state.match_id, TEAM_B, TossDecision.BOWL)
    sql_engine.start_innings(state.match_id, 1, OPENER_1, OPENER_2, BOWLER_1)
    return state.match_id


def test_ledger_rows_written(sql_engine, sql_match, session_local):
    sql_engine.submit_delivery(sql_match, 1, DeliveryOutcome(runs=4, commentary="Driven through cover"))
    sql_engine.submit_delivery(sql_match, 1, DeliveryOutcome(extra_type=ExtraType.WIDE))

    with session_local() as session:
        rows = session.scalars(
            select(LedgerEntryRecord).where(LedgerEntryRecord.match_id == sql_match).order_by(LedgerEntryRecord.sequence)
        ).all()
        assert [r.kind for r in rows] == ["toss", "innings_started", "delivery", "delivery"]
        assert [r.sequence for r in rows] == [1, 2, 3, 4]
        four, wide = rows[2], rows[3]
        assert four.runs_off_bat == 4
        assert four.total_runs == 4
        assert four.commentary == "Driven through cover"
        assert wide.extra_type == "wide"
        assert wide.extra_runs == 1
        assert wide.is_legal is False

        inning = session.scalars(select(Inning).where(Inning.match_id == sql_match)).one()
        assert inning.runs_scored == 5
        assert inning.wides == 1
        assert inning.status == InningStatus.IN_PROGRESS
        assert inning.batting_team_id == TEAM_A
        assert inning.overs == "0.1"


def test_reload_from_storage(sql_engine, sql_match, repository, scoring):
    sql_engine.submit_delivery(sql_match, 1, DeliveryOutcome(runs=1))
    sql_engine.submit_delivery(sql_match, 1, DeliveryOutcome(
        dismissal=Dismissal(dismissal_type=DismissalType.BOWLED, player_out_id=OPENER_2)
    ))
    sql_engine.select_replacement_batter(sql_match, 1, NUMBER_3)

    fresh = ScoringEngine(repository=repository, scoring=scoring)
    assert fresh.get_match_state(sql_match).model_dump() == sql_engine.get_match_state(sql_match).model_dump()
    assert fresh.list_matches() == [sql_match]


def test_undo_deletes_rows_and_second_innings(sql_engine, sql_match, session_local):
    for _ in range(6):
        sql_engine.submit_delivery(sql_match, 1, DeliveryOutcome(runs=1))

    with session_local() as session:
        assert len(session.scalars(select(Inning).where(Inning.match_id == sql_match)).all()) == 2

    sql_engine.undo_last_delivery(sql_match, 1)

    with session_local() as session:
        innings = session.scalars(select(Inning).where(Inning.match_id == sql_match)).all()
        assert [i.innings_number for i in innings] == [1]
        assert innings[0].runs_scored == 5
        count = len(session.scalars(select(LedgerEntryRecord).where(LedgerEntryRecord.match_id == sql_match)).all())
        assert count == 7


def test_result_summary(sql_engine, sql_match, session_local):
    for _ in range(6):
        sql_engine.submit_delivery(sql_match, 1, DeliveryOutcome())
    sql_engine.start_innings(sql_match, 2, 201, 202, OPENER_1)
    sql_engine.submit_delivery(sql_match, 2, DeliveryOutcome(runs=1))

    with session_local() as session:
        match = session.get(Match, sql_match)
        assert match.status == MatchStatus.COMPLETED
        assert match.toss_winner_id == TEAM_B
        assert match.result_type == "wickets"
        assert match.winner_team_id == TEAM_B
        assert match.win_margin == 10


def test_unknown_match(repository):
    with pytest.raises(MatchNotFound):
        repository.load(404)


def test_assign_rejects_unknown_columns():
    match = Match(team_a_id=TEAM_A, team_b_id=TEAM_B)
    match.assign(title="Renamed", current_innings=1)
    assert match.title == "Renamed"
    with pytest.raises(AttributeError):
        match.assign(runs=10)
