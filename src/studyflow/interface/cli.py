"""studyflow CLI: review scheduling, previews and study-queue helpers."""

import json
import logging
import sys
import tomllib
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Annotated, Any, NoReturn

import typer
from pydantic import ValidationError
from pydantic_settings import SettingsError

from studyflow.application.config import AppConfig, resolve_config
from studyflow.application.scheduling import (
    calculate_sm2,
    format_interval,
    get_initial_sm2_for_new_card,
    get_preview_intervals,
    is_card_due,
    simplified_to_quality,
    sort_cards_by_urgency,
)
from studyflow.application.stats import summarize_progress
from studyflow.application.utils.clock import to_datetime
from studyflow.domain import constants as c
from studyflow.domain.exceptions import SchedulingContractError
from studyflow.domain.scheduling.models import QualityRating, SM2Input

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="studyflow: SM-2 spaced repetition scheduling for flashcards.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage studyflow configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _fail(message: str) -> NoReturn:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@contextmanager
def _contract_errors() -> Iterator[None]:
    """Turn invalid input into a readable error and exit code 1."""
    try:
        yield
    except SchedulingContractError as e:
        _fail(str(e))


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))


def log_level_for(verbose: int) -> int:
    """0 -> WARNING, 1 -> INFO, 2 or more -> DEBUG."""
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def _load_config(ctx: typer.Context) -> AppConfig:
    """Resolve configuration and apply its verbosity to the studyflow loggers."""
    try:
        config = resolve_config({"verbose": ctx.obj.get("verbose")})
    except (ValidationError, SettingsError, tomllib.TOMLDecodeError) as e:
        _fail(f"Invalid configuration: {e}")
    logging.getLogger("studyflow").setLevel(log_level_for(config.verbose))
    logger.debug(f"Scheduler parameters: {config.to_parameters()}")
    return config


def _parse_now(now: str | None) -> datetime | None:
    return to_datetime(now) if now else None


def _resolve_quality(rating: str | None, quality: int | None) -> QualityRating:
    if (rating is None) == (quality is None):
        _fail("Pass exactly one of --rating or --quality.")
    if rating is not None:
        return simplified_to_quality(rating.lower())
    return QualityRating.coerce(quality)


def _load_cards(cards_file: typer.FileText) -> list[dict[str, Any]]:
    try:
        cards = json.load(cards_file)
    except json.JSONDecodeError as e:
        _fail(f"Could not parse cards JSON: {e}")
    if not isinstance(cards, list) or not all(isinstance(card, dict) for card in cards):
        _fail("Cards JSON must be an array of objects.")
    return cards


RatingOption = Annotated[
    str | None, typer.Option("--rating", "-r", help="Button pressed: again, hard, good, easy.")
]
QualityOption = Annotated[
    int | None, typer.Option("--quality", "-q", help="Raw SM-2 quality 0-5.")
]
NowOption = Annotated[
    str | None, typer.Option(help="Review time as ISO-8601. Defaults to now (UTC).")
]
EaseOption = Annotated[float, typer.Option(help="Current ease factor.")]
IntervalOption = Annotated[float, typer.Option(help="Current interval in days.")]
RepetitionsOption = Annotated[int, typer.Option(help="Consecutive successful reviews.")]
LapsesOption = Annotated[int, typer.Option(help="Total failed reviews.")]

# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for studyflow."""
    ctx.ensure_object(dict)
    # Each -v adds a level on top of INFO; without it env/TOML decide
    ctx.obj["verbose"] = 1 + verbose if verbose else None


# ---------------------------------------------------------------------------
# Scheduling commands
# ---------------------------------------------------------------------------


@app.command()
def review(
    ctx: typer.Context,
    rating: RatingOption = None,
    quality: QualityOption = None,
    ease_factor: EaseOption = c.DEFAULT_EASE_FACTOR,
    interval: IntervalOption = c.DEFAULT_INTERVAL,
    repetitions: RepetitionsOption = c.DEFAULT_REPETITIONS,
    lapses: LapsesOption = c.DEFAULT_LAPSES,
    now: NowOption = None,
):
    """[bold green]Review[/bold green] a card and print its next schedule."""
    config = _load_config(ctx)
    with _contract_errors():
        sm2_input = SM2Input(
            quality=_resolve_quality(rating, quality),
            current_ease_factor=ease_factor,
            current_interval=interval,
            repetitions=repetitions,
            lapses=lapses,
        )
        result = calculate_sm2(sm2_input, now=_parse_now(now), params=config.to_parameters())
    _echo_json(result.to_dict())


@app.command()
def new(
    ctx: typer.Context,
    rating: RatingOption = None,
    quality: QualityOption = None,
    now: NowOption = None,
):
    """Schedule the first review of a never-studied card."""
    config = _load_config(ctx)
    with _contract_errors():
        result = get_initial_sm2_for_new_card(
            _resolve_quality(rating, quality),
            now=_parse_now(now),
            params=config.to_parameters(),
        )
    _echo_json(result.to_dict())


@app.command()
def preview(
    ctx: typer.Context,
    ease_factor: EaseOption = c.DEFAULT_EASE_FACTOR,
    interval: IntervalOption = c.DEFAULT_INTERVAL,
    repetitions: RepetitionsOption = c.DEFAULT_REPETITIONS,
    lapses: LapsesOption = c.DEFAULT_LAPSES,
):
    """Show the next interval each button would give."""
    config = _load_config(ctx)
    with _contract_errors():
        previews = get_preview_intervals(
            ease_factor,
            interval,
            repetitions,
            lapses,
            params=config.to_parameters(),
        )
    _echo_json({rating.value: label for rating, label in previews.items()})


@app.command("format")
def format_cmd(
    ctx: typer.Context,
    days: Annotated[float, typer.Argument(min=0.0, help="Interval in days.")],
):
    """Format an interval in days as a short label."""
    _load_config(ctx)
    with _contract_errors():
        label = format_interval(days)
    typer.echo(label)


# ---------------------------------------------------------------------------
# Queue commands
# ---------------------------------------------------------------------------


@app.command()
def due(
    ctx: typer.Context,
    next_review: Annotated[
        str | None, typer.Argument(help="Scheduled review time (ISO-8601). Omit for new cards.")
    ] = None,
    now: NowOption = None,
):
    """Print whether a card is due."""
    _load_config(ctx)
    with _contract_errors():
        is_due = is_card_due(next_review, now=_parse_now(now))
    typer.echo("true" if is_due else "false")


@app.command("sort")
def sort_cmd(
    ctx: typer.Context,
    cards_file: Annotated[
        typer.FileText, typer.Argument(help="JSON array of cards, or '-' for stdin.")
    ],
    now: NowOption = None,
):
    """Sort cards for a study session: new first, then most overdue."""
    _load_config(ctx)
    cards = _load_cards(cards_file)
    with _contract_errors():
        ordered = sort_cards_by_urgency(cards, now=_parse_now(now))
    _echo_json(ordered)


@app.command()
def progress(
    ctx: typer.Context,
    cards_file: Annotated[
        typer.FileText, typer.Argument(help="JSON array of cards, or '-' for stdin.")
    ],
    now: NowOption = None,
):
    """Summarize mastery and due counts for a deck."""
    _load_config(ctx)
    cards = _load_cards(cards_file)
    with _contract_errors():
        summary = summarize_progress(cards, now=_parse_now(now))
    _echo_json(summary.to_dict())


# ---------------------------------------------------------------------------
# Config commands
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display the resolved configuration."""
    config = _load_config(ctx)
    _echo_json(config.model_dump(mode="json"))
