"""Rule validator.

Pure checks of a proposed operation against the current match state. Each
function either returns the accepted, annotated result or raises a
``RuleViolation``; none of them mutate the state, so validating the same
submission twice against the same state always gives the same decision.
"""

from typing import Any, Dict, Optional

from ..config import ScoringSettings, ShortRunPenaltyPolicy
from ..models.innings import InningStatus
from ..models.matches import MatchStatus, TossDecision
from ..schemas.deliveries import AcceptedBall, DeliveryOutcome, DismissalType, ExtraType
from ..schemas.state import InningsState, MatchState
from .commentary import describe
from .errors import (
    AwaitingReplacement,
    BowlerIsBatting,
    BowlerMismatch,
    ConsecutiveOverByBowler,
    DismissalNotPermitted,
    InningsAlreadyComplete,
    InningsNotStarted,
    InvalidDismissal,
    InvalidOpeners,
    MatchAlreadyComplete,
    OverAlreadyComplete,
    OverInProgress,
    StrikerMismatch,
    TossViolation,
    WicketLimitExceeded,
    WrongInnings,
)
from .rotation import bowler_eligible

# Dismissals still possible off a no ball
NO_BALL_DISMISSALS = frozenset({
    DismissalType.RUN_OUT,
    DismissalType.OBSTRUCTING_FIELD,
    DismissalType.HANDLED_BALL,
    DismissalType.HIT_BALL_TWICE,
})

# Dismissals still possible off a wide
WIDE_DISMISSALS = frozenset({
    DismissalType.RUN_OUT,
    DismissalType.STUMPED,
    DismissalType.HIT_WICKET,
    DismissalType.OBSTRUCTING_FIELD,
    DismissalType.HANDLED_BALL,
})

NON_STRIKER_DISMISSALS = frozenset({
    DismissalType.RUN_OUT,
    DismissalType.OBSTRUCTING_FIELD,
    DismissalType.HANDLED_BALL,
})


def position(innings: Optional[InningsState]) -> Dict[str, Any]:
    """Structured position detail attached to every rejection."""
    if innings is None:
        return {}
    over = innings.current_over
    return {
        "innings_number": innings.innings_number,
        "over_number": over.over_number if over else None,
        "ball_in_over": over.deliveries if over else None,
        "legal_balls_in_over": over.legal_balls if over else None,
        "bowler_id": innings.current_bowler_id,
    }


def check_innings_open(match: MatchState, innings_number: int) -> InningsState:
    """The addressed innings must exist, be the current one and be in progress."""
    innings = match.get_innings(innings_number)
    if match.is_completed:
        raise MatchAlreadyComplete(f"Match {match.match_id} is already complete", **position(innings))
    if innings is None:
        raise InningsNotStarted(f"Innings {innings_number} does not exist yet")
    if innings.is_complete:
        raise InningsAlreadyComplete(f"Innings {innings_number} is already complete", **position(innings))
    if innings.status == InningStatus.NOT_STARTED:
        raise InningsNotStarted(f"Innings {innings_number} has not started", **position(innings))
    if innings_number != match.current_innings:
        raise WrongInnings(
            f"Innings {innings_number} is not the current innings ({match.current_innings})",
            **position(innings),
        )
    return innings


def validate_toss(match: MatchState, winner_team_id: int, decision: TossDecision) -> None:
    """The toss is recorded once before play and won by one of the two teams."""
    if match.status != MatchStatus.SETUP:
        raise TossViolation(f"Toss already recorded for match {match.match_id}")
    if winner_team_id not in (match.team_a_id, match.team_b_id):
        raise TossViolation(f"Team {winner_team_id} is not playing in match {match.match_id}")


def validate_innings_start(
    match: MatchState, innings_number: int, striker_id: int, non_striker_id: int, bowler_id: int
) -> InningsState:
    """An innings starts once, after the toss, with two distinct batters and a bowler who is neither."""
    if match.is_completed:
        raise MatchAlreadyComplete(f"Match {match.match_id} is already complete")
    if match.toss is None:
        raise TossViolation("The toss must be recorded before an innings starts")
    innings = match.get_innings(innings_number)
    if innings is None:
        raise WrongInnings(f"Innings {innings_number} is not available to start")
    if innings.is_complete:
        raise InningsAlreadyComplete(f"Innings {innings_number} is already complete", **position(innings))
    if innings.status != InningStatus.NOT_STARTED:
        raise WrongInnings(f"Innings {innings_number} has already started", **position(innings))
    if striker_id == non_striker_id:
        raise InvalidOpeners("The two opening batters must be different players")
    if bowler_id in (striker_id, non_striker_id):
        raise BowlerIsBatting(f"Bowler {bowler_id} is one of the opening batters")
    return innings


def validate_bowler_change(match: MatchState, innings_number: int, bowler_id: int) -> InningsState:
    """A new bowler may be named when an over is complete or has not had a ball yet."""
    innings = check_innings_open(match, innings_number)
    pos = position(innings)
    if bowler_id in innings.batters:
        raise BowlerIsBatting(f"Bowler {bowler_id} is currently batting", **pos)

    over = innings.current_over
    if innings.awaiting_bowler:
        previous = over.bowler_id
    elif over is not None and over.deliveries == 0:
        previous = innings.previous_over_bowler_id
    else:
        raise OverInProgress(
            f"Over {innings.over_number} is in progress; the bowler can change once it is complete", **pos
        )
    if not bowler_eligible(previous, bowler_id):
        raise ConsecutiveOverByBowler(f"Bowler {bowler_id} bowled the previous over", **pos)
    return innings


def validate_strike_switch(match: MatchState, innings_number: int) -> InningsState:
    """Strike may be swapped by hand while the innings is open and no wicket is pending."""
    innings = check_innings_open(match, innings_number)
    if innings.awaiting_replacement is not None:
        raise AwaitingReplacement(
            f"Player {innings.awaiting_replacement.player_out_id} is out; name the incoming batter first",
            **position(innings),
        )
    return innings


def validate_close_innings(match: MatchState, innings_number: int) -> InningsState:
    """An innings may be closed by hand only while it is the one in progress."""
    return check_innings_open(match, innings_number)


def validate_close_match(match: MatchState) -> None:
    """Any match not yet decided may be ended."""
    if match.is_completed:
        raise MatchAlreadyComplete(f"Match {match.match_id} is already complete", **position(match.current))


def short_run_penalty(innings: InningsState, policy: ScoringSettings) -> int:
    """Penalty runs for a deliberate short run under the configured policy."""
    if policy.short_run_penalty_policy == ShortRunPenaltyPolicy.ALWAYS:
        return policy.short_run_penalty_runs
    if policy.short_run_penalty_policy == ShortRunPenaltyPolicy.REPEAT_OFFENCE:
        return policy.short_run_penalty_runs if innings.deliberate_short_runs else 0
    return 0


def _check_dismissal(match: MatchState, innings: InningsState, outcome: DeliveryOutcome, pos: dict) -> None:
    dismissal = outcome.dismissal
    kind = dismissal.dismissal_type
    if dismissal.player_out_id not in innings.batters:
        raise InvalidDismissal(f"Player {dismissal.player_out_id} is not at the crease", **pos)
    if dismissal.player_out_id == innings.non_striker_id and kind not in NON_STRIKER_DISMISSALS:
        raise InvalidDismissal(f"The non-striker cannot be out {kind.value}", **pos)
    if outcome.extra_type == ExtraType.NO_BALL and kind not in NO_BALL_DISMISSALS:
        raise DismissalNotPermitted(f"A batter cannot be out {kind.value} off a no ball", **pos)
    if outcome.extra_type == ExtraType.WIDE and kind not in WIDE_DISMISSALS:
        raise DismissalNotPermitted(f"A batter cannot be out {kind.value} off a wide", **pos)
    if innings.wickets + 1 > match.format.max_wickets:
        raise WicketLimitExceeded(
            f"Innings {innings.innings_number} already has {innings.wickets} wickets", **pos
        )


def validate_delivery(
    match: MatchState, innings_number: int, outcome: DeliveryOutcome, policy: ScoringSettings
) -> AcceptedBall:
    """Check a proposed delivery and return it annotated with its derived fields."""
    innings = check_innings_open(match, innings_number)
    pos = position(innings)
    over = innings.current_over

    if innings.awaiting_bowler or over.legal_balls >= match.format.balls_per_over:
        raise OverAlreadyComplete(
            f"Over {over.over_number} is complete; name the bowler for the next over", **pos
        )
    if innings.awaiting_replacement is not None:
        raise AwaitingReplacement(
            f"Player {innings.awaiting_replacement.player_out_id} is out; the incoming batter must be named",
            **pos,
        )
    if not bowler_eligible(innings.previous_over_bowler_id, innings.current_bowler_id):
        raise ConsecutiveOverByBowler(f"Bowler {innings.current_bowler_id} bowled the previous over", **pos)
    if outcome.bowler_id is not None and outcome.bowler_id != innings.current_bowler_id:
        raise BowlerMismatch(
            f"Bowler {outcome.bowler_id} is not bowling; current bowler is {innings.current_bowler_id}", **pos
        )
    if outcome.striker_id is not None and outcome.striker_id != innings.striker_id:
        raise StrikerMismatch(
            f"Player {outcome.striker_id} is not on strike; striker is {innings.striker_id}", **pos
        )

    common = {
        "innings_number": innings_number,
        "over_number": over.over_number,
        "ball_in_over": over.deliveries + 1,
        "striker_id": innings.striker_id,
        "non_striker_id": innings.non_striker_id,
        "bowler_id": innings.current_bowler_id,
        "extra_type": outcome.extra_type,
    }

    if outcome.dead_ball:
        ball = AcceptedBall(
            **common,
            legal_ball_in_over=over.legal_balls,
            is_legal=False,
            is_dead_ball=True,
            commentary=outcome.commentary,
        )
        if ball.commentary is None:
            ball.commentary = describe(ball)
        return ball

    if outcome.dismissal is not None:
        _check_dismissal(match, innings, outcome, pos)

    runs_off_bat = outcome.runs
    extra_runs = outcome.extra_runs
    fielding_penalty = 0
    if outcome.short_runs:
        if outcome.deliberate_short_run:
            runs_off_bat = extra_runs = 0
            fielding_penalty = short_run_penalty(innings, policy)
        else:
            cut = min(outcome.short_runs, runs_off_bat)
            runs_off_bat -= cut
            extra_runs -= outcome.short_runs - cut

    is_legal = outcome.extra_type not in (ExtraType.WIDE, ExtraType.NO_BALL)
    extras = {"wides": 0, "no_balls": 0, "byes": 0, "leg_byes": 0}
    if outcome.extra_type == ExtraType.WIDE:
        extras["wides"] = policy.illegal_delivery_runs + extra_runs
    elif outcome.extra_type == ExtraType.NO_BALL:
        extras["no_balls"] = policy.illegal_delivery_runs + extra_runs
    elif outcome.extra_type == ExtraType.BYE:
        extras["byes"] = extra_runs
    elif outcome.extra_type == ExtraType.LEG_BYE:
        extras["leg_byes"] = extra_runs

    ball = AcceptedBall(
        **common,
        **extras,
        legal_ball_in_over=over.legal_balls + (1 if is_legal else 0),
        runs_off_bat=runs_off_bat,
        penalty_runs=outcome.penalty_runs,
        fielding_penalty_runs=fielding_penalty,
        is_legal=is_legal,
        short_runs=outcome.short_runs,
        deliberate_short_run=outcome.deliberate_short_run,
        dismissal=outcome.dismissal.model_copy() if outcome.dismissal is not None else None,
        commentary=outcome.commentary,
    )
    if ball.commentary is None:
        ball.commentary = describe(ball)
    return ball
