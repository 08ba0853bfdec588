"""Dismissal and replacement coordination.

A wicket leaves the innings waiting for the incoming batter. New deliveries
are rejected until the replacement is named; nothing blocks.
"""

from ..schemas.deliveries import AcceptedBall
from ..schemas.state import InningsState, MatchState, PendingReplacement
from .errors import InvalidReplacement, NotAwaitingReplacement
from .rotation import StrikePair, fill, vacate
from .rules import check_innings_open, position
from .statistics import StatisticsAggregator


def await_replacement(innings: InningsState, ball: AcceptedBall, pair_after: StrikePair) -> None:
    """Record which slot the dismissed batter vacated once strike has been resolved."""
    player_out_id = ball.dismissal.player_out_id
    innings.awaiting_replacement = PendingReplacement(
        player_out_id=player_out_id,
        slot=vacate(pair_after, player_out_id),
    )


def validate_replacement(match: MatchState, innings_number: int, player_id: int) -> InningsState:
    """Only a pending wicket can be filled, and only by a player yet to bat who is not bowling."""
    innings = check_innings_open(match, innings_number)
    pos = position(innings)
    if innings.awaiting_replacement is None:
        raise NotAwaitingReplacement(f"Innings {innings_number} is not waiting for a new batter", **pos)
    if player_id in innings.stats.batting:
        raise InvalidReplacement(f"Player {player_id} has already batted in this innings", **pos)
    if player_id == innings.current_bowler_id:
        raise InvalidReplacement(f"Player {player_id} is the current bowler", **pos)
    return innings


def bring_in(innings: InningsState, aggregator: StatisticsAggregator, player_id: int) -> None:
    """Fill the vacated slot and start the next partnership."""
    pending = innings.awaiting_replacement
    innings.striker_id, innings.non_striker_id = fill(innings.batters, pending.slot, player_id)
    innings.awaiting_replacement = None
    aggregator.open_batter(player_id)
    aggregator.start_partnership(innings.striker_id, innings.non_striker_id)
