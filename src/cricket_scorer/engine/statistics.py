"""Statistics aggregation over accepted balls.

The aggregator is the incremental step of the ledger fold: replaying every
ball of an innings through ``record_ball``/``close_over`` from empty
statistics reproduces the live figures exactly.
"""

from ..schemas.deliveries import AcceptedBall, DismissalType, ExtraType
from ..schemas.state import (
    BattingFigures,
    BowlingFigures,
    FallOfWicket,
    FieldingFigures,
    InningsStatistics,
    OverSummary,
    Partnership,
    overs_notation,
)


class StatisticsAggregator:
    """Applies balls to the batting, bowling, fielding and partnership views."""

    def __init__(self, stats: InningsStatistics, balls_per_over: int = 6):
        self.stats = stats
        self.balls_per_over = balls_per_over

    def open_batter(self, player_id: int) -> BattingFigures:
        figures = self.stats.batting.get(player_id)
        if figures is None:
            figures = BattingFigures(player_id=player_id, position=len(self.stats.batting) + 1)
            self.stats.batting[player_id] = figures
        return figures

    def bowler(self, player_id: int) -> BowlingFigures:
        figures = self.stats.bowling.get(player_id)
        if figures is None:
            figures = BowlingFigures(player_id=player_id)
            self.stats.bowling[player_id] = figures
        return figures

    def fielder(self, player_id: int) -> FieldingFigures:
        figures = self.stats.fielding.get(player_id)
        if figures is None:
            figures = FieldingFigures(player_id=player_id)
            self.stats.fielding[player_id] = figures
        return figures

    def start_partnership(self, batter_one_id: int, batter_two_id: int) -> Partnership:
        partnership = Partnership(
            wicket_number=len(self.stats.fall_of_wickets) + 1,
            batter_one_id=batter_one_id,
            batter_two_id=batter_two_id,
        )
        self.stats.partnerships.append(partnership)
        return partnership

    def record_ball(self, ball: AcceptedBall, score_after: int, legal_balls_after: int) -> None:
        """Apply one accepted ball. Dead balls change nothing."""
        if ball.is_dead_ball:
            return

        batter = self.open_batter(ball.striker_id)
        batter.runs += ball.runs_off_bat
        if ball.faced_by_striker:
            batter.balls_faced += 1
            if ball.runs_off_bat == 0 and ball.is_legal:
                batter.dots += 1
        if ball.is_four:
            batter.fours += 1
        elif ball.is_six:
            batter.sixes += 1

        bowler = self.bowler(ball.bowler_id)
        if ball.is_legal:
            bowler.legal_balls += 1
            if ball.bowler_runs == 0:
                bowler.dots += 1
        bowler.runs_conceded += ball.bowler_runs
        if ball.extra_type == ExtraType.WIDE:
            bowler.wides += 1
        elif ball.extra_type == ExtraType.NO_BALL:
            bowler.no_balls += 1

        partnership = self.stats.current_partnership
        if partnership is not None:
            partnership.runs += ball.total_runs
            if ball.is_legal:
                partnership.balls += 1

        if ball.dismissal is not None:
            self._record_dismissal(ball, score_after, legal_balls_after)

    def _record_dismissal(self, ball: AcceptedBall, score_after: int, legal_balls_after: int) -> None:
        dismissal = ball.dismissal
        out = self.open_batter(dismissal.player_out_id)
        out.is_out = True
        out.dismissal_type = dismissal.dismissal_type
        out.fielder_id = dismissal.fielder_id
        if dismissal.credited_to_bowler:
            out.bowler_id = ball.bowler_id
            self.bowler(ball.bowler_id).wickets += 1

        if dismissal.dismissal_type == DismissalType.CAUGHT:
            # Caught and bowled when no fielder is named
            self.fielder(dismissal.fielder_id or ball.bowler_id).catches += 1
        elif dismissal.dismissal_type == DismissalType.RUN_OUT and dismissal.fielder_id is not None:
            self.fielder(dismissal.fielder_id).run_outs += 1
        elif dismissal.dismissal_type == DismissalType.STUMPED and dismissal.fielder_id is not None:
            self.fielder(dismissal.fielder_id).stumpings += 1

        partnership = self.stats.current_partnership
        if partnership is not None:
            partnership.unbroken = False

        self.stats.fall_of_wickets.append(FallOfWicket(
            wicket_number=len(self.stats.fall_of_wickets) + 1,
            player_out_id=dismissal.player_out_id,
            score=score_after,
            overs=overs_notation(legal_balls_after, self.balls_per_over),
        ))

    def close_over(self, over: OverSummary) -> None:
        """Credit a maiden once the over is complete."""
        if over.maiden:
            self.bowler(over.bowler_id).maidens += 1
