"""Error taxonomy of the scoring engine.

Rule violations are expected, user-correctable rejections. They carry enough
position detail (over, ball, bowler) for a caller to correct the submission
without fetching the full match state.
"""

from typing import Any, Dict, Optional


class ScoringError(Exception):
    """Base class for every error raised by the scoring engine."""


class MatchNotFound(ScoringError):
    def __init__(self, match_id: int):
        super().__init__(f"Match {match_id} not found")
        self.match_id = match_id


class RuleViolation(ScoringError):
    """A submission broke a rule of play; state is unchanged."""

    rule = "rule_violation"

    def __init__(
        self,
        detail: str,
        *,
        innings_number: Optional[int] = None,
        over_number: Optional[int] = None,
        ball_in_over: Optional[int] = None,
        legal_balls_in_over: Optional[int] = None,
        bowler_id: Optional[int] = None,
    ):
        super().__init__(detail)
        self.detail = detail
        self.innings_number = innings_number
        self.over_number = over_number
        self.ball_in_over = ball_in_over
        self.legal_balls_in_over = legal_balls_in_over
        self.bowler_id = bowler_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule": self.rule,
            "detail": self.detail,
            "innings_number": self.innings_number,
            "over_number": self.over_number,
            "ball_in_over": self.ball_in_over,
            "legal_balls_in_over": self.legal_balls_in_over,
            "bowler_id": self.bowler_id,
        }

    def __eq__(self, other):
        return type(other) is type(self) and other.to_dict() == self.to_dict()

    def __hash__(self):
        return hash((self.rule, self.detail))


class MatchAlreadyComplete(RuleViolation):
    rule = "match_already_complete"


class InningsAlreadyComplete(RuleViolation):
    rule = "innings_already_complete"


class InningsNotStarted(RuleViolation):
    rule = "innings_not_started"


class WrongInnings(RuleViolation):
    rule = "wrong_innings"


class TossViolation(RuleViolation):
    rule = "toss"


class OverAlreadyComplete(RuleViolation):
    rule = "over_already_complete"


class OverInProgress(RuleViolation):
    rule = "over_in_progress"


class ConsecutiveOverByBowler(RuleViolation):
    rule = "consecutive_over_by_bowler"


class BowlerMismatch(RuleViolation):
    rule = "bowler_mismatch"


class BowlerIsBatting(RuleViolation):
    rule = "bowler_is_batting"


class StrikerMismatch(RuleViolation):
    rule = "striker_mismatch"


class DismissalNotPermitted(RuleViolation):
    rule = "dismissal_not_permitted"


class InvalidDismissal(RuleViolation):
    rule = "invalid_dismissal"


class WicketLimitExceeded(RuleViolation):
    rule = "wicket_limit_exceeded"


class ReplacementViolation(RuleViolation):
    """Rejections tied to the awaiting-replacement sub-state.

    ``AwaitingReplacement`` means an operation arrived while the incoming batter
    is still to be named; ``NotAwaitingReplacement`` means a batter was named
    when no wicket is pending. Callers that only need to know the wicket flow
    blocked them should catch this base class.
    """

    rule = "replacement"


class AwaitingReplacement(ReplacementViolation):
    rule = "awaiting_replacement"


class NotAwaitingReplacement(ReplacementViolation):
    rule = "not_awaiting_replacement"


class InvalidReplacement(ReplacementViolation):
    rule = "invalid_replacement"


class InvalidOpeners(RuleViolation):
    rule = "invalid_openers"


class NothingToUndo(ScoringError):
    """The addressed innings has no delivery to remove."""

    def __init__(self, match_id: int, innings_number: int):
        super().__init__(f"No delivery to undo in innings {innings_number} of match {match_id}")
        self.match_id = match_id
        self.innings_number = innings_number


class UndoNotPermitted(ScoringError):
    """Only the most recent delivery of a match can be undone."""


class ConsistencyError(ScoringError):
    """Replaying the ledger produced a state different from the incremental one."""

    def __init__(self, match_id: int, diverging: Dict[str, Any]):
        keys = ", ".join(sorted(diverging)) or "unknown"
        super().__init__(f"Match {match_id}: ledger replay diverges from live state at {keys}")
        self.match_id = match_id
        self.diverging = diverging


class MatchQuarantined(ConsistencyError):
    """The match failed a consistency check earlier and is refused until repaired."""

    def __init__(self, match_id: int, diverging: Optional[Dict[str, Any]] = None):
        super().__init__(match_id, diverging or {})
        self.args = (f"Match {match_id} is quarantined after a consistency failure",)
