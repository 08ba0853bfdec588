"""Over, innings and match state machine.

The match state is a left fold of ``apply_entry`` over the ledger, starting
from ``new_match``. Every transition (over completion, innings completion,
automatic second innings, early win, match result) happens here and nowhere
else, so incremental application and full replay cannot drift apart.
"""

from typing import Callable, Dict, Optional

from loguru import logger

from ..models.innings import CompletionReason, InningStatus
from ..models.matches import MatchStatus, TossDecision
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
from ..schemas.deliveries import ExtraType
from ..schemas.matches import MatchCreate, MatchResult, ResultType, Toss
from ..schemas.state import InningsState, MatchState
from .dismissals import await_replacement, bring_in
from .rotation import next_strike, open_over, renominate, switch_strike
from .statistics import StatisticsAggregator


def new_match(match_id: int, setup: MatchCreate) -> MatchState:
    """Initial state of a freshly created match."""
    return MatchState(
        match_id=match_id,
        title=setup.title,
        team_a_id=setup.team_a_id,
        team_b_id=setup.team_b_id,
        format=setup.format.model_copy(),
    )


def aggregator_for(match: MatchState, innings: InningsState) -> StatisticsAggregator:
    return StatisticsAggregator(innings.stats, match.format.balls_per_over)


def _new_innings(match: MatchState, innings_number: int, batting_team_id: int) -> InningsState:
    return InningsState(
        innings_number=innings_number,
        batting_team_id=batting_team_id,
        bowling_team_id=match.other_team(batting_team_id),
        balls_per_over=match.format.balls_per_over,
    )


def _on_toss(match: MatchState, entry: TossRecorded) -> None:
    match.toss = Toss(winner_team_id=entry.winner_team_id, decision=entry.decision)
    match.status = MatchStatus.TOSS_DONE
    if entry.decision == TossDecision.BAT:
        batting_first = entry.winner_team_id
    else:
        batting_first = match.other_team(entry.winner_team_id)
    match.innings.append(_new_innings(match, 1, batting_first))


def _on_innings_started(match: MatchState, entry: InningsStarted) -> None:
    innings = match.get_innings(entry.innings_number)
    innings.status = InningStatus.IN_PROGRESS
    innings.striker_id = entry.striker_id
    innings.non_striker_id = entry.non_striker_id

    aggregator = aggregator_for(match, innings)
    aggregator.open_batter(entry.striker_id)
    aggregator.open_batter(entry.non_striker_id)
    aggregator.start_partnership(entry.striker_id, entry.non_striker_id)
    open_over(innings, entry.bowler_id)

    match.status = MatchStatus.IN_PROGRESS
    match.current_innings = entry.innings_number


def _on_bowler_changed(match: MatchState, entry: BowlerChanged) -> None:
    innings = match.get_innings(entry.innings_number)
    if innings.awaiting_bowler:
        open_over(innings, entry.bowler_id)
    else:
        renominate(innings, entry.bowler_id)


def _on_batter_in(match: MatchState, entry: BatterIn) -> None:
    innings = match.get_innings(entry.innings_number)
    bring_in(innings, aggregator_for(match, innings), entry.player_id)


def _on_strike_switched(match: MatchState, entry: StrikeSwitched) -> None:
    switch_strike(match.get_innings(entry.innings_number))


def _on_delivery(match: MatchState, entry: DeliveryRecorded) -> None:
    ball = entry.ball
    innings = match.get_innings(entry.innings_number)
    over = innings.current_over

    innings.deliveries += 1
    over.deliveries += 1
    over.balls.append(ball.label)
    if ball.is_dead_ball:
        return

    innings.runs += ball.total_runs
    innings.extras.wides += ball.wides
    innings.extras.no_balls += ball.no_balls
    innings.extras.byes += ball.byes
    innings.extras.leg_byes += ball.leg_byes
    innings.extras.penalties += ball.penalty_runs
    if ball.is_legal:
        innings.legal_balls += 1
        over.legal_balls += 1
    elif ball.extra_type in (ExtraType.WIDE, ExtraType.NO_BALL):
        over.all_legal = False
    over.total_runs += ball.total_runs
    over.bowler_runs += ball.bowler_runs

    if ball.deliberate_short_run:
        innings.deliberate_short_runs += 1
    if ball.fielding_penalty_runs:
        innings.fielding_penalty_runs += ball.fielding_penalty_runs
        if innings.target is not None:
            # The fielding side batted first; its total, and so the target, goes up
            innings.target += ball.fielding_penalty_runs
    if ball.is_wicket:
        innings.wickets += 1
        over.wickets += 1

    aggregator = aggregator_for(match, innings)
    aggregator.record_ball(ball, innings.runs, innings.legal_balls)

    over_completed = ball.is_legal and over.legal_balls == match.format.balls_per_over
    pair = next_strike(innings.striker_id, innings.non_striker_id, ball.runs_off_bat, over_completed)
    innings.striker_id, innings.non_striker_id = pair
    if over_completed:
        over.completed = True
        innings.awaiting_bowler = True
        aggregator.close_over(over)
    if ball.is_wicket:
        await_replacement(innings, ball, pair)

    _check_completion(match, innings)


def _on_innings_closed(match: MatchState, entry: InningsClosed) -> None:
    complete_innings(match, match.get_innings(entry.innings_number), entry.reason)


def _on_match_closed(match: MatchState, entry: MatchClosed) -> None:
    complete_match(match)


_HANDLERS: Dict[str, Callable] = {
    "toss": _on_toss,
    "innings_started": _on_innings_started,
    "bowler_changed": _on_bowler_changed,
    "batter_in": _on_batter_in,
    "strike_switched": _on_strike_switched,
    "delivery": _on_delivery,
    "innings_closed": _on_innings_closed,
    "match_closed": _on_match_closed,
}


def apply_entry(match: MatchState, entry) -> None:
    """Apply one ledger entry to the match state in place."""
    _HANDLERS[entry.kind](match, entry)
    match.last_sequence = entry.sequence


def completion_reason(match: MatchState, innings: InningsState) -> Optional[CompletionReason]:
    """Reason the innings has just finished, if it has."""
    if innings.target is not None and innings.runs >= innings.target:
        return CompletionReason.TARGET_REACHED
    if innings.wickets >= match.format.max_wickets:
        return CompletionReason.ALL_OUT
    quota = match.format.legal_ball_quota
    if quota is not None and innings.legal_balls >= quota:
        return CompletionReason.OVERS_EXHAUSTED
    return None


def _check_completion(match: MatchState, innings: InningsState) -> None:
    reason = completion_reason(match, innings)
    if reason is not None:
        complete_innings(match, innings, reason)


def complete_innings(match: MatchState, innings: InningsState, reason: CompletionReason) -> None:
    """Close an innings; the first innings hands over to the second, the second ends the match."""
    innings.status = InningStatus.COMPLETED
    innings.completion_reason = reason
    innings.awaiting_bowler = False
    innings.awaiting_replacement = None
    logger.debug(
        f"match={match.match_id} innings={innings.innings_number} complete ({reason.value}) "
        f"{innings.runs}/{innings.wickets} in {innings.overs_display}"
    )

    if innings.innings_number == 1 and reason != CompletionReason.MATCH_ENDED:
        second = _new_innings(match, 2, innings.bowling_team_id)
        second.target = innings.runs + 1
        if innings.fielding_penalty_runs:
            second.runs = innings.fielding_penalty_runs
            second.extras.penalties = innings.fielding_penalty_runs
        match.innings.append(second)
        match.current_innings = 2
    else:
        complete_match(match)


def complete_match(match: MatchState) -> None:
    for innings in match.innings:
        if innings.status == InningStatus.IN_PROGRESS:
            innings.status = InningStatus.COMPLETED
            innings.completion_reason = CompletionReason.MATCH_ENDED
            innings.awaiting_bowler = False
            innings.awaiting_replacement = None
    match.status = MatchStatus.COMPLETED
    match.result = decide_result(match)


def decide_result(match: MatchState) -> MatchResult:
    first = match.get_innings(1)
    second = match.get_innings(2)
    if first is None or second is None or second.status == InningStatus.NOT_STARTED:
        return MatchResult(result_type=ResultType.NO_RESULT, description="No result")

    if second.runs >= second.target:
        margin = match.format.max_wickets - second.wickets
        return MatchResult(
            result_type=ResultType.WICKETS,
            winner_team_id=second.batting_team_id,
            margin=margin,
            description=f"Team {second.batting_team_id} won by {margin} wicket{'s' if margin != 1 else ''}",
        )
    if second.completion_reason == CompletionReason.MATCH_ENDED:
        return MatchResult(result_type=ResultType.NO_RESULT, description="No result")
    if second.runs == second.target - 1:
        return MatchResult(result_type=ResultType.TIE, margin=0, description="Match tied")

    margin = second.target - 1 - second.runs
    return MatchResult(
        result_type=ResultType.RUNS,
        winner_team_id=second.bowling_team_id,
        margin=margin,
        description=f"Team {second.bowling_team_id} won by {margin} run{'s' if margin != 1 else ''}",
    )
