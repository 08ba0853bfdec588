"""Strike and bowler rotation.

Strike after a delivery depends only on the prior pair, the runs off the bat,
whether the over just completed and whether a batter was dismissed.
"""

from typing import Optional, Tuple

from ..schemas.state import InningsState, OverSummary

StrikePair = Tuple[int, int]


def should_swap(runs_off_bat: int, over_completed: bool) -> bool:
    """Odd runs swap ends, the end of an over swaps ends; both together cancel."""
    return (runs_off_bat % 2 == 1) != over_completed


def next_strike(striker: int, non_striker: int, runs_off_bat: int, over_completed: bool) -> StrikePair:
    """Return ``(striker, non_striker)`` for the next delivery."""
    if should_swap(runs_off_bat, over_completed):
        return non_striker, striker
    return striker, non_striker


def vacate(pair: StrikePair, player_out_id: int) -> str:
    """Name the slot a dismissed batter leaves empty."""
    striker, non_striker = pair
    if player_out_id == striker:
        return "striker"
    if player_out_id == non_striker:
        return "non_striker"
    raise ValueError(f"Player {player_out_id} is not at the crease")


def fill(pair: StrikePair, slot: str, incoming_id: int) -> StrikePair:
    """Put the incoming batter in the vacated slot."""
    striker, non_striker = pair
    if slot == "striker":
        return incoming_id, non_striker
    return striker, incoming_id


def switch_strike(innings: InningsState) -> None:
    """Exchange the striker and non-striker."""
    innings.striker_id, innings.non_striker_id = innings.non_striker_id, innings.striker_id


def bowler_eligible(previous_over_bowler_id: Optional[int], bowler_id: int) -> bool:
    """A bowler may not bowl two consecutive overs."""
    return previous_over_bowler_id is None or previous_over_bowler_id != bowler_id


def open_over(innings: InningsState, bowler_id: int) -> None:
    """Start the next over with ``bowler_id``, moving the current bowler to previous."""
    if innings.current_over is not None:
        innings.previous_over_bowler_id = innings.current_over.bowler_id
    innings.over_number += 1
    innings.current_bowler_id = bowler_id
    innings.overs.append(OverSummary(over_number=innings.over_number, bowler_id=bowler_id))
    innings.awaiting_bowler = False


def renominate(innings: InningsState, bowler_id: int) -> None:
    """Swap the bowler of an over that has not had a delivery yet."""
    innings.current_bowler_id = bowler_id
    innings.current_over.bowler_id = bowler_id
