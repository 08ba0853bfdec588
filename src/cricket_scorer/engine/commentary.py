"""Default commentary for balls submitted without any."""

from ..schemas.deliveries import AcceptedBall, ExtraType

_DISMISSAL_TEXT = {
    "bowled": "Bowled him!",
    "caught": "Caught!",
    "lbw": "Plumb in front, LBW.",
    "run_out": "Run out!",
    "stumped": "Stumped!",
    "hit_wicket": "Hit wicket!",
    "obstructing_field": "Out, obstructing the field.",
    "handled_ball": "Out, handled the ball.",
    "hit_ball_twice": "Out, hit the ball twice.",
}


def _runs(n: int) -> str:
    return "1 run" if n == 1 else f"{n} runs"


def describe(ball: AcceptedBall) -> str:
    if ball.is_dead_ball:
        return "Dead ball called"

    parts = []
    if ball.extra_type == ExtraType.WIDE:
        parts.append(f"Wide ball! {_runs(ball.wides)}")
    elif ball.extra_type == ExtraType.NO_BALL:
        parts.append(f"No ball! {_runs(ball.no_balls + ball.runs_off_bat)} in total")
    elif ball.extra_type == ExtraType.BYE:
        parts.append(f"{_runs(ball.byes)}, byes")
    elif ball.extra_type == ExtraType.LEG_BYE:
        parts.append(f"{_runs(ball.leg_byes)}, leg byes")

    if ball.is_four:
        parts.append("Boundary! Four runs")
    elif ball.is_six:
        parts.append("Maximum! Six runs")
    elif ball.extra_type in (ExtraType.NONE, ExtraType.PENALTY) and not ball.dismissal:
        parts.append(_runs(ball.runs_off_bat) if ball.runs_off_bat else "No run")

    if ball.short_runs:
        if ball.deliberate_short_run:
            parts.append("Deliberate short run, runs disallowed")
        else:
            parts.append("Short run called - run not counted")
    if ball.penalty_runs:
        parts.append(f"{ball.penalty_runs} penalty runs to the batting side")
    if ball.fielding_penalty_runs:
        parts.append(f"{ball.fielding_penalty_runs} penalty runs to the fielding side")
    if ball.dismissal is not None:
        parts.append(_DISMISSAL_TEXT[ball.dismissal.dismissal_type.value])
    return ". ".join(parts)
