"""Tests for per-match serialization of concurrent submissions."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from cricket_scorer.engine import errors
from cricket_scorer.schemas import DeliveryOutcome

from conftest import BOWLER_2, innings_of


def test_concurrent_submissions_to_one_match(engine, match_id):
    barrier = threading.Barrier(8)
    rejected = []

    def submit(_):
        barrier.wait()
        try:
            engine.submit_delivery(match_id, 1, DeliveryOutcome(runs=1))
        except errors.OverAlreadyComplete as e:
            rejected.append(e)

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(submit, range(8)))

    innings = innings_of(engine, match_id)
    assert innings.legal_balls == 6
    assert innings.runs == 6
    assert len(rejected) == 2
    assert innings.current_over.legal_balls == 6
    assert engine.verify_match(match_id).last_sequence == 8


def test_matches_progress_independently(engine, make_match):
    match_ids = [make_match() for _ in range(4)]

    def play(match_id):
        for _ in range(6):
            engine.submit_delivery(match_id, 1, DeliveryOutcome(runs=2))
        engine.change_bowler(match_id, 1, BOWLER_2)
        for _ in range(3):
            engine.submit_delivery(match_id, 1, DeliveryOutcome())
        return match_id

    with ThreadPoolExecutor(max_workers=4) as pool:
        done = list(pool.map(play, match_ids))

    assert done == match_ids
    for match_id in match_ids:
        innings = innings_of(engine, match_id)
        assert innings.runs == 12
        assert innings.overs_display == "1.3"


@pytest.mark.parametrize("workers", [2, 6])
def test_notifications_in_ledger_order(engine, match_id, workers):
    sequences = []
    engine.subscribe(lambda change: sequences.append(change.sequence))

    def submit(_):
        engine.submit_delivery(match_id, 1, DeliveryOutcome())

    with ThreadPoolExecutor(max_workers=workers) as pool:
        list(pool.map(submit, range(6)))

    assert sequences == sorted(sequences)
    assert len(sequences) == 6
