"""Main CLI interface for the cricket scoring engine."""

import json
import sys
from typing import NoReturn, Optional

import typer
from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from ..config import settings
from ..database import configure_database, create_tables, drop_tables
from ..engine import RuleViolation, ScoringEngine, ScoringError
from ..models.matches import TossDecision
from ..schemas.deliveries import DismissalType, ExtraType
from ..schemas.matches import MatchCreate, MatchFormat
from ..schemas.state import InningsState, MatchSnapshot
from ..storage import SqlMatchRepository

# Initialize rich console
console = Console()


def setup_logging(level: str = "INFO", log_file: Optional[str] = None):
    """Route loguru through rich, plus an optional log file."""
    logger.remove()
    logger.add(
        RichHandler(console=console, show_time=True, show_path=False),
        level=level.upper(),
        format="{message}",
    )
    if log_file:
        logger.add(
            log_file,
            level=level.upper(),
            format="{time:YYYY-MM-DD HH:mm:ss} - {name} - {level} - {message}",
        )


app = typer.Typer(
    name="cricket-scorer",
    help="Cricket Scorer - ball-by-ball scoring engine for limited-overs matches",
    no_args_is_help=True
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Log file path"),
    database_url: Optional[str] = typer.Option(None, "--database-url", help="SQLAlchemy URL overriding DB_* settings"),
):
    """Cricket Scorer - ball-by-ball scoring engine for limited-overs matches."""
    log_level = "DEBUG" if verbose else settings.logging.level
    setup_logging(log_level, log_file or settings.logging.file)
    if database_url:
        configure_database(database_url)


def get_engine() -> ScoringEngine:
    return ScoringEngine(repository=SqlMatchRepository())


def _fail(action: str, error: Exception) -> NoReturn:
    if isinstance(error, RuleViolation):
        where = ""
        if error.over_number is not None:
            where = f" (over {error.over_number}, ball {error.ball_in_over}, bowler {error.bowler_id})"
        console.print(f"[red]❌ {action} rejected ({error.rule}): {escape(error.detail)}{where}[/red]")
    elif isinstance(error, ValidationError):
        console.print(f"[red]❌ {action} rejected: invalid input[/red]")
        for item in error.errors():
            loc = ".".join(str(part) for part in item["loc"]) or "payload"
            console.print(f"[red]   {loc}: {item['msg']}[/red]")
        raise typer.Exit(2)
    else:
        console.print(f"[red]❌ {action} failed: {escape(str(error))}[/red]")
    raise typer.Exit(1)


def _print_change(change) -> None:
    score = f"{change.runs}/{change.wickets} ({change.overs} ov)"
    if change.target is not None:
        score += f", target {change.target}"
    console.print(f"[cyan]{score}[/cyan]")
    if change.awaiting_bowler:
        console.print("[yellow]Over complete: name the next bowler[/yellow]")
    if change.awaiting_replacement:
        console.print("[yellow]Wicket: name the incoming batter[/yellow]")
    if change.result is not None:
        console.print(f"[bold green]🏆 {change.result.description}[/bold green]")


@app.command()
def setup_db(force: bool = typer.Option(False, "--force", help="Force recreation of tables")):
    """Initialize database schema."""
    console.print("[bold]Setting up database schema...[/bold]")

    try:
        if force:
            console.print("Dropping existing tables...")
            drop_tables()

        console.print("Creating database tables...")
        create_tables()

        console.print("[green]✅ Database schema initialized successfully![/green]")

    except Exception as e:
        console.print(f"[red]❌ Database setup failed: {e}[/red]")
        raise typer.Exit(1)


@app.command("new-match")
def new_match(
    team_a: int = typer.Option(..., "--team-a", help="First team ID"),
    team_b: int = typer.Option(..., "--team-b", help="Second team ID"),
    title: Optional[str] = typer.Option(None, "--title", help="Match title"),
    balls_per_over: int = typer.Option(settings.scoring.default_balls_per_over, "--balls-per-over"),
    overs: Optional[int] = typer.Option(
        settings.scoring.default_overs_per_innings, "--overs", help="Overs per innings (0 for unlimited)"
    ),
    players: int = typer.Option(settings.scoring.default_players_per_side, "--players", help="Players per side"),
):
    """Create a match and print its ID."""
    try:
        setup = MatchCreate(
            title=title,
            team_a_id=team_a,
            team_b_id=team_b,
            format=MatchFormat(
                balls_per_over=balls_per_over,
                overs_per_innings=overs or None,
                players_per_side=players,
            ),
        )
        state = get_engine().create_match(setup)
    except (ScoringError, ValidationError) as e:
        _fail("New match", e)
    console.print(f"[green]✅ Match {state.match_id} created[/green]")


@app.command()
def toss(
    match_id: int = typer.Argument(..., help="Match ID"),
    winner: int = typer.Argument(..., help="Team that won the toss"),
    decision: TossDecision = typer.Option(TossDecision.BAT, "--decision", help="Elected to bat or bowl"),
):
    """Record the toss."""
    try:
        change = get_engine().record_toss(match_id, winner, decision)
    except (ScoringError, ValidationError) as e:
        _fail("Toss", e)
    console.print(f"[green]✅ Toss recorded: team {winner} elected to {decision.value}[/green]")
    _print_change(change)


@app.command("start-innings")
def start_innings(
    match_id: int = typer.Argument(..., help="Match ID"),
    innings: int = typer.Argument(..., help="Innings number"),
    striker: int = typer.Argument(..., help="Opening striker"),
    non_striker: int = typer.Argument(..., help="Opening non-striker"),
    bowler: int = typer.Argument(..., help="Opening bowler"),
):
    """Open an innings with two batters and a bowler."""
    try:
        change = get_engine().start_innings(match_id, innings, striker, non_striker, bowler)
    except (ScoringError, ValidationError) as e:
        _fail("Start innings", e)
    console.print(f"[green]✅ Innings {innings} started[/green]")
    _print_change(change)


def _submit(match_id: int, innings: int, payload: dict) -> None:
    engine = get_engine()
    try:
        ball = engine.submit_delivery(match_id, innings, payload)
        snapshot = engine.get_match_state(match_id)
    except (ScoringError, ValidationError) as e:
        _fail("Delivery", e)
    console.print(f"[green]{ball.over_number}.{ball.ball_in_over}[/green] {escape(ball.commentary or '')}")
    _print_snapshot_line(snapshot)


@app.command()
def ball(
    match_id: int = typer.Argument(..., help="Match ID"),
    innings: int = typer.Argument(..., help="Innings number"),
    runs: int = typer.Option(0, "--runs", "-r", help="Runs off the bat"),
    extra: ExtraType = typer.Option(ExtraType.NONE, "--extra", "-e", help="Extra type"),
    extra_runs: int = typer.Option(0, "--extra-runs", help="Runs run or scored as extras"),
    penalty: int = typer.Option(0, "--penalty", help="Penalty runs to the batting side"),
    wicket: Optional[DismissalType] = typer.Option(None, "--wicket", "-w", help="Dismissal type"),
    out: Optional[int] = typer.Option(None, "--out", help="Player out (default: striker)"),
    fielder: Optional[int] = typer.Option(None, "--fielder", help="Fielder credited with the dismissal"),
    short: int = typer.Option(0, "--short", help="Runs called short"),
    deliberate: bool = typer.Option(False, "--deliberate", help="Short running was deliberate"),
    dead: bool = typer.Option(False, "--dead", help="Dead ball"),
    comment: Optional[str] = typer.Option(None, "--comment", "-c", help="Commentary"),
):
    """Record one delivery."""
    payload = {
        "runs": runs,
        "extra_type": extra,
        "extra_runs": extra_runs,
        "penalty_runs": penalty,
        "short_runs": short,
        "deliberate_short_run": deliberate,
        "dead_ball": dead,
        "commentary": comment,
    }
    if wicket is not None:
        if out is None:
            try:
                current = get_engine().get_match_state(match_id).current_innings
            except ScoringError as e:
                _fail("Delivery", e)
            out = current.striker_id if current else None
        payload["dismissal"] = {"dismissal_type": wicket, "player_out_id": out, "fielder_id": fielder}
    _submit(match_id, innings, payload)


@app.command("ball-json")
def ball_json(
    match_id: int = typer.Argument(..., help="Match ID"),
    innings: int = typer.Argument(..., help="Innings number"),
    payload: str = typer.Argument(..., help="Delivery outcome as JSON, or '-' to read stdin"),
):
    """Record one delivery from a JSON payload."""
    text = sys.stdin.read() if payload == "-" else payload
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        console.print(f"[red]❌ Invalid JSON: {e}[/red]")
        raise typer.Exit(2)
    _submit(match_id, innings, data)


@app.command()
def undo(
    match_id: int = typer.Argument(..., help="Match ID"),
    innings: int = typer.Argument(..., help="Innings number"),
):
    """Undo the most recent delivery of an innings."""
    try:
        snapshot = get_engine().undo_last_delivery(match_id, innings)
    except (ScoringError, ValidationError) as e:
        _fail("Undo", e)
    console.print("[green]✅ Last delivery removed[/green]")
    _print_snapshot_line(snapshot)


@app.command()
def bowler(
    match_id: int = typer.Argument(..., help="Match ID"),
    innings: int = typer.Argument(..., help="Innings number"),
    player_id: int = typer.Argument(..., help="Bowler for the next over"),
):
    """Name the bowler of the next over."""
    try:
        change = get_engine().change_bowler(match_id, innings, player_id)
    except (ScoringError, ValidationError) as e:
        _fail("Bowler change", e)
    console.print(f"[green]✅ Player {player_id} to bowl[/green]")
    _print_change(change)


@app.command()
def batter(
    match_id: int = typer.Argument(..., help="Match ID"),
    innings: int = typer.Argument(..., help="Innings number"),
    player_id: int = typer.Argument(..., help="Incoming batter"),
):
    """Name the batter replacing a dismissed one."""
    try:
        change = get_engine().select_replacement_batter(match_id, innings, player_id)
    except (ScoringError, ValidationError) as e:
        _fail("Replacement", e)
    console.print(f"[green]✅ Player {player_id} comes in[/green]")
    _print_change(change)


@app.command("swap-strike")
def swap_strike(
    match_id: int = typer.Argument(..., help="Match ID"),
    innings: int = typer.Argument(..., help="Innings number"),
):
    """Swap striker and non-striker."""
    try:
        change = get_engine().switch_strike(match_id, innings)
    except (ScoringError, ValidationError) as e:
        _fail("Strike switch", e)
    console.print(f"[green]✅ Player {change.striker_id} now on strike[/green]")


@app.command("end-innings")
def end_innings(
    match_id: int = typer.Argument(..., help="Match ID"),
    innings: int = typer.Argument(..., help="Innings number"),
):
    """Close an innings early."""
    try:
        closed = get_engine().end_innings(match_id, innings)
    except (ScoringError, ValidationError) as e:
        _fail("End innings", e)
    console.print(f"[green]✅ Innings {innings} closed at {closed.runs}/{closed.wickets} ({closed.overs_display} ov)[/green]")


@app.command("end-match")
def end_match(
    match_id: int = typer.Argument(..., help="Match ID"),
    note: Optional[str] = typer.Option(None, "--note", help="Reason for ending the match"),
):
    """End a match and record the result."""
    try:
        result = get_engine().end_match(match_id, note)
    except (ScoringError, ValidationError) as e:
        _fail("End match", e)
    console.print(f"[bold green]🏆 {result.description}[/bold green]")


def _print_snapshot_line(snapshot: MatchSnapshot) -> None:
    innings = snapshot.current_innings
    if innings is None:
        return
    line = f"{innings.runs}/{innings.wickets} ({innings.overs_display} ov)"
    if innings.target is not None and not innings.is_complete:
        line += f", need {innings.runs_required} from target {innings.target}"
    console.print(f"[cyan]{line}[/cyan]")
    if snapshot.current_over is not None:
        console.print(f"This over: {' '.join(snapshot.current_over.balls) or '-'}")
    if innings.awaiting_bowler:
        console.print("[yellow]Over complete: name the next bowler[/yellow]")
    if innings.awaiting_replacement is not None:
        console.print("[yellow]Wicket: name the incoming batter[/yellow]")
    if snapshot.match.result is not None:
        console.print(f"[bold green]🏆 {snapshot.match.result.description}[/bold green]")


def _innings_tables(innings: InningsState):
    bpo = innings.balls_per_over

    batting = Table(title=f"Innings {innings.innings_number}: team {innings.batting_team_id} "
                          f"{innings.runs}/{innings.wickets} ({innings.overs_display} ov)")
    batting.add_column("Batter", style="cyan")
    batting.add_column("Status")
    batting.add_column("R", justify="right", style="green")
    batting.add_column("B", justify="right")
    batting.add_column("4s", justify="right")
    batting.add_column("6s", justify="right")
    batting.add_column("SR", justify="right")
    for figures in sorted(innings.stats.batting.values(), key=lambda f: f.position):
        if figures.is_out:
            status = figures.dismissal_type.value
        elif figures.player_id == innings.striker_id and innings.is_in_progress:
            status = "not out *"
        else:
            status = "not out"
        batting.add_row(
            str(figures.player_id), status, str(figures.runs), str(figures.balls_faced),
            str(figures.fours), str(figures.sixes), f"{figures.strike_rate:.2f}",
        )
    extras = innings.extras
    batting.caption = (
        f"Extras {extras.total} (w {extras.wides}, nb {extras.no_balls}, b {extras.byes}, "
        f"lb {extras.leg_byes}, p {extras.penalties})"
    )

    bowling = Table(title=f"Bowling: team {innings.bowling_team_id}")
    bowling.add_column("Bowler", style="cyan")
    bowling.add_column("O", justify="right")
    bowling.add_column("M", justify="right")
    bowling.add_column("R", justify="right")
    bowling.add_column("W", justify="right", style="red")
    bowling.add_column("Econ", justify="right")
    for figures in innings.stats.bowling.values():
        bowling.add_row(
            str(figures.player_id), figures.overs(bpo), str(figures.maidens), str(figures.runs_conceded),
            str(figures.wickets), f"{figures.economy(bpo):.2f}",
        )
    return batting, bowling


@app.command()
def show(match_id: int = typer.Argument(..., help="Match ID")):
    """Show the scorecard and the live position of a match."""
    try:
        snapshot = get_engine().get_match_state(match_id)
    except (ScoringError, ValidationError) as e:
        _fail("Show", e)

    match = snapshot.match
    console.print(f"\n[bold blue]🏏 {match.title or f'Match {match.match_id}'}[/bold blue] ({match.status.value})")
    if match.toss is not None:
        console.print(f"Toss: team {match.toss.winner_team_id} elected to {match.toss.decision.value}")
    for innings in match.innings:
        if innings.status.value == "not_started":
            continue
        batting, bowling = _innings_tables(innings)
        console.print(batting)
        console.print(bowling)
        console.print(f"Extras: {innings.extras.total}  Run rate: {innings.run_rate:.2f}")
        if innings.stats.fall_of_wickets:
            fow = ", ".join(
                f"{w.score}-{w.wicket_number} ({w.player_out_id}, {w.overs} ov)"
                for w in innings.stats.fall_of_wickets
            )
            console.print(f"Fall of wickets: {fow}")
    if snapshot.recent_balls:
        console.print(f"Recent: {' '.join(ball.label for ball in snapshot.recent_balls)}")
    _print_snapshot_line(snapshot)


@app.command()
def verify(
    match_id: int = typer.Argument(..., help="Match ID"),
    repair: bool = typer.Option(False, "--repair", help="Rebuild the match state from its ledger"),
):
    """Replay a match's ledger and check it against the live state."""
    try:
        state = get_engine().verify_match(match_id, repair=repair)
    except (ScoringError, ValidationError) as e:
        _fail("Verify", e)
    console.print(f"[green]✅ Match {match_id} consistent at ledger sequence {state.last_sequence}[/green]")


@app.command()
def export(
    match_id: int = typer.Argument(..., help="Match ID"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write the export to this file"),
):
    """Export a match's setup, ledger and snapshot as JSON."""
    try:
        data = get_engine().export_match(match_id).model_dump_json(indent=2)
    except ScoringError as e:
        _fail("Export", e)
    if output is None:
        typer.echo(data)
        return
    with open(output, "w", encoding="utf-8") as f:
        f.write(data)
    console.print(f"[green]✅ Match {match_id} exported to {output}[/green]")


@app.command("matches")
def list_matches():
    """List stored matches."""
    try:
        engine = get_engine()
        table = Table(title="Matches")
        table.add_column("ID", style="cyan")
        table.add_column("Teams", style="green")
        table.add_column("Status", style="magenta")
        table.add_column("Result")
        for match_id in engine.list_matches():
            state = engine.get_match_state(match_id).match
            table.add_row(
                str(match_id), f"{state.team_a_id} v {state.team_b_id}", state.status.value,
                state.result.description if state.result else "",
            )
    except ScoringError as e:
        _fail("List", e)
    console.print(table)


if __name__ == "__main__":
    app()
