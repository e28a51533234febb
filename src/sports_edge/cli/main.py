"""Command line interface for sports-edge."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Dict, List, Tuple

import click
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..analysis.backtest import BacktestResult
from ..analysis.edge_calculator import EdgeResult, MarketLines, Prediction
from ..config import SPORT_REGISTRY, get_settings, get_sport, list_sports
from ..data.csv_io import export_games_csv, load_games_csv, template_csv
from ..exceptions import SportsEdgeError
from ..storage import SportDataRepository, create_store
from ..tracking import summarize_bets
from ..utils import setup_logging
from ..workflow import AnalyticsService

console = Console()
logger = logging.getLogger(__name__)

SPORT_CHOICE = click.Choice(list_sports(), case_sensitive=False)


def _service() -> AnalyticsService:
    settings = get_settings()
    return AnalyticsService(SportDataRepository(create_store(settings)), settings)


def _run(coro):
    """Run a service coroutine, turning engine errors into a clean abort."""
    try:
        return asyncio.run(coro)
    except SportsEdgeError as e:
        console.print(f"[red]❌ Error: {e}[/red]")
        raise click.Abort()


def _parse_inputs(pairs: Tuple[str, ...]) -> Dict[str, str]:
    inputs = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise click.BadParameter(f"Expected name=value, got {pair!r}", param_hint="--input")
        inputs[name.strip()] = value.strip()
    return inputs


@click.group()
@click.version_option(__version__, prog_name="sports-edge")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def main(verbose):
    """Sports betting analytics: train, predict and backtest by sport."""
    setup_logging(level="DEBUG" if verbose else None)


@main.command()
def sports():
    """List supported sports and their features."""
    table = Table(title="Supported Sports")
    table.add_column("Key", style="cyan")
    table.add_column("Name")
    table.add_column("Features")
    table.add_column("Markets")

    for key in list_sports():
        config = SPORT_REGISTRY[key]
        markets = ["moneyline"]
        if config.supports_spread:
            markets.append("spread")
        if config.supports_total:
            markets.append("total")
        table.add_row(key, config.display_name, ", ".join(config.features), ", ".join(markets))

    console.print(table)


@main.command()
@click.argument("sport", type=SPORT_CHOICE)
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write to file instead of stdout")
def template(sport, output):
    """Print an example upload CSV for SPORT."""
    text = template_csv(get_sport(sport))
    if output:
        Path(output).write_text(text)
        console.print(f"✅ Template written to {output}")
    else:
        click.echo(text, nl=False)


@main.command()
@click.argument("sport", type=SPORT_CHOICE)
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--append", is_flag=True, help="Add to stored rows instead of replacing them")
def upload(sport, csv_file, append):
    """Store historical games for SPORT from CSV_FILE."""
    try:
        rows = load_games_csv(csv_file)
    except ValueError as e:
        console.print(f"[red]❌ Error: {e}[/red]")
        raise click.Abort()

    count = _run(_service().upload(sport.lower(), rows, append=append))
    console.print(f"✅ Stored {count} {sport.lower()} games")


@main.command()
@click.argument("sport", type=SPORT_CHOICE)
def train(sport):
    """Train a model for SPORT on its stored games."""
    sport = sport.lower()
    with console.status(f"Training {sport} model..."):
        outcome = _run(_service().train(sport))

    console.print(
        f"✅ Trained on {outcome.stats.sample_count} games, "
        f"accuracy {outcome.stats.accuracy:.1%}"
    )
    if not outcome.persisted:
        console.print("[yellow]⚠️ Model could not be saved; it will not be available later[/yellow]")

    table = Table(title="Feature Importance")
    table.add_column("Feature", style="cyan")
    table.add_column("|Weight|", justify="right")
    for name, value in outcome.stats.feature_importance:
        table.add_row(name, f"{value:.4f}")
    console.print(table)


@main.command()
@click.argument("sport", type=SPORT_CHOICE)
@click.option("--input", "-i", "pairs", multiple=True, help="Feature value as name=value (repeatable)")
@click.option("--spread", type=float, help="Side 1 point spread")
@click.option("--spread-odds1", type=float, help="Price of side 1 against the spread")
@click.option("--spread-odds2", type=float, help="Price of side 2 against the spread")
@click.option("--total", type=float, help="Totals line")
@click.option("--over-odds", type=float, help="Price of the over")
@click.option("--under-odds", type=float, help="Price of the under")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
def predict(sport, pairs, spread, spread_odds1, spread_odds2, total, over_odds, under_odds, as_json):
    """Predict a matchup for SPORT and show the edge on each market."""
    lines = MarketLines(
        spread=spread,
        spread_odds1=spread_odds1,
        spread_odds2=spread_odds2,
        total=total,
        over_odds=over_odds,
        under_odds=under_odds,
    )
    prediction, results = _run(_service().predict(sport.lower(), _parse_inputs(pairs), lines))
    if as_json:
        payload = {"prediction": prediction.to_dict(), "markets": [r.to_dict() for r in results]}
        click.echo(json.dumps(payload, indent=2))
    else:
        display_prediction(prediction, results)


def display_prediction(prediction: Prediction, results: List[EdgeResult]):
    console.print(
        f"[bold]Side 1:[/bold] {prediction.p1:.1%} (fair {prediction.implied_line1:+d})   "
        f"[bold]Side 2:[/bold] {prediction.p2:.1%} (fair {prediction.implied_line2:+d})   "
        f"confidence {prediction.confidence:.1f}"
    )

    settings = get_settings()
    table = Table(title="Market Edges")
    table.add_column("Market", style="cyan")
    table.add_column("Side")
    table.add_column("Odds", justify="right")
    table.add_column("Prob", justify="right")
    table.add_column("EV / $100", justify="right")
    table.add_column("Bet?", justify="center")

    for result in results:
        market = f"{result.market}*" if result.is_heuristic else result.market
        prob = result.prob1 if result.best_index == 0 else result.prob2
        ev_color = "green" if result.best_ev > 0 else "red"
        table.add_row(
            market,
            result.best_side,
            f"{result.best_odds:+.0f}",
            f"{prob:.1%}",
            f"[{ev_color}]{result.best_ev:+.2f}[/{ev_color}]",
            "✅" if result.best_ev > settings.min_ev_pct else "",
        )

    console.print(table)
    if any(result.is_heuristic for result in results):
        console.print("[dim]* heuristic estimate, not a fitted model[/dim]")


@main.command()
@click.argument("sport", type=SPORT_CHOICE)
@click.option("--min-ev", type=float, help="Minimum EV per $100 to place a bet")
@click.option("--warmup", type=click.IntRange(min=0), help="Leading games used only to seed form")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
def backtest(sport, min_ev, warmup, as_json):
    """Replay the SPORT model over its stored games."""
    sport = sport.lower()
    with console.status(f"Backtesting {sport}..."):
        result = _run(_service().backtest(sport, min_ev_pct=min_ev, warmup=warmup))
    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        display_backtest(result)


def display_backtest(result: BacktestResult):
    table = Table(title=f"{result.sport.upper()} Backtest")
    table.add_column("Market", style="cyan")
    table.add_column("Bets", justify="right")
    table.add_column("W-L-P", justify="right")
    table.add_column("Win %", justify="right")
    table.add_column("Profit", justify="right")

    for name, stats in result.markets.items():
        color = "green" if stats.profit_cents >= 0 else "red"
        table.add_row(
            name,
            str(stats.bets),
            f"{stats.wins}-{stats.losses}-{stats.pushes}",
            f"{stats.win_rate:.1%}",
            f"[{color}]${stats.profit:,.2f}[/{color}]",
        )
    console.print(table)

    console.print(
        f"Bankroll ${result.starting_bankroll:,.2f} → ${result.final_bankroll:,.2f}   "
        f"bets {result.total_bets}   ROI {result.roi:+.2f}%"
    )
    console.print(
        f"[dim]{result.rows_evaluated} games evaluated, {result.rows_skipped} skipped, "
        f"{result.warmup_rows} warm-up[/dim]"
    )


@main.command()
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--last", "last_n", type=int, default=5, help="Size of the recent window")
def record(csv_file, last_n):
    """Grade the logged bets in CSV_FILE."""
    try:
        rows = load_games_csv(csv_file)
    except ValueError as e:
        console.print(f"[red]❌ Error: {e}[/red]")
        raise click.Abort()

    table = Table(title="Betting Record")
    table.add_column("Window", style="cyan")
    table.add_column("Record", justify="right")
    table.add_column("Win %", justify="right")
    table.add_column("Profit", justify="right")

    for label, summary in (
        (f"Last {last_n}", summarize_bets(rows, last_n=last_n)),
        ("All time", summarize_bets(rows)),
    ):
        color = "green" if summary.profit >= 0 else "red"
        table.add_row(
            label,
            summary.record,
            f"{summary.win_pct:.1f}%",
            f"[{color}]${summary.profit:,.2f}[/{color}]",
        )

    console.print(table)


@main.command()
@click.argument("sport", type=SPORT_CHOICE)
@click.option("--output", "-o", type=click.Path(dir_okay=False), required=True, help="CSV file to write")
def export(sport, output):
    """Export SPORT's stored games with last-5 records."""
    sport = sport.lower()
    rows = _run(SportDataRepository(create_store(get_settings())).fetch_training_rows(sport))
    if not rows:
        console.print(f"[yellow]No stored {sport} games[/yellow]")
        return
    Path(output).write_text(export_games_csv(rows, get_settings().form_window))
    console.print(f"✅ Exported {len(rows)} games to {output}")


@main.command()
@click.argument("sport", type=SPORT_CHOICE)
@click.option("--keep-games", is_flag=True, help="Only delete the model")
def reset(sport, keep_games):
    """Delete SPORT's stored model (and games)."""
    sport = sport.lower()
    repository = SportDataRepository(create_store(get_settings()))

    async def _reset():
        await repository.delete_model(sport)
        if not keep_games:
            await repository.delete_training_rows(sport)

    _run(_reset())
    console.print(f"✅ Cleared {sport} {'model' if keep_games else 'model and games'}")


@main.command()
def status():
    """Show which sports have stored data."""
    repository = SportDataRepository(create_store(get_settings()))
    stored = _run(repository.list_sports())
    if not stored:
        console.print("[yellow]Nothing stored yet[/yellow]")
        return

    table = Table(title="Stored Sports")
    table.add_column("Sport", style="cyan")
    table.add_column("Games", justify="right")
    table.add_column("Model")
    table.add_column("Accuracy", justify="right")

    async def _details():
        rows = []
        for sport in stored:
            games = await repository.fetch_training_rows(sport)
            model = await repository.fetch_model(sport)
            rows.append((sport, len(games), model))
        return rows

    for sport, games, model in _run(_details()):
        accuracy = f"{model[1].accuracy:.1%}" if model else "-"
        table.add_row(sport, str(games), "✅" if model else "", accuracy)
    console.print(table)


if __name__ == "__main__":
    main()
