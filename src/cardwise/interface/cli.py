"""cardwise CLI: queue inspection, interactive study, and progress commands."""

import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any

import typer

from cardwise.application.config import AppConfig, resolve_config
from cardwise.application.factory import (
    get_card_repository,
    get_session_manager,
    get_stats_service,
)
from cardwise.application.mastery import (
    classify,
    days_until_review,
    format_interval,
    is_due_today,
    is_overdue,
)
from cardwise.application.queue_builder import build_queue_detailed
from cardwise.domain.errors import CardwiseError, NoCardsAvailable, SessionAlreadyActive
from cardwise.domain.scheduling.models import QueueFilter, Rating, StudyMode
from cardwise.interface.views import Complete, Dashboard, Studying, view_after

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="cardwise: spaced-repetition practice for question/answer cards.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

config_app = typer.Typer(help="Manage cardwise configuration.")
app.add_typer(config_app, name="config")

RATING_KEYS = {str(int(r)): r for r in Rating}


def _now() -> datetime:
    return datetime.now().astimezone()


def _resolve_with_overrides(**overrides: Any) -> AppConfig:
    return resolve_config({k: v for k, v in overrides.items() if v is not None})


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(getattr(k, "name", k)).lower(): _jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    return value


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
    """Global settings for cardwise."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if verbose >= 2:
        logging.getLogger().setLevel(logging.DEBUG)
    elif verbose == 1:
        logging.getLogger().setLevel(logging.INFO)


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command("queue")
def queue(
    deck_file: Annotated[
        Path | None, typer.Option("--deck", help="YAML deck file. Defaults to config.")
    ] = None,
    mode: Annotated[StudyMode, typer.Option(help="Study mode; sets the caps.")] = StudyMode.DAILY,
    profile: Annotated[str | None, typer.Option(help="Profile to build for.")] = None,
    application: Annotated[
        str | None, typer.Option(help="Only cards for this application.")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show the cards the next session would contain, in order."""
    config = _resolve_with_overrides(deck_file=deck_file)
    card_filter = QueueFilter(profile_id=profile or config.profile_id, application_id=application)
    caps = config.caps_for(mode)
    now = _now()

    try:
        cards = get_card_repository(config).list_cards(card_filter)
    except CardwiseError as e:
        typer.secho(str(e), fg="red")
        raise typer.Exit(1) from None

    result = build_queue_detailed(cards, card_filter, caps, now)
    by_id = {c.id: c for c in cards}

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "queue": result.ordered,
                    "overdue": result.overdue,
                    "due": result.due,
                    "new": result.new,
                    "dropped": len(result.dropped_review) + len(result.dropped_new),
                    "excluded": len(result.excluded),
                },
                indent=2,
            )
        )
        return

    if not result.ordered:
        typer.secho("Nothing due. Come back later or add cards.", fg="yellow")
        return

    typer.echo(
        f"Mode: {mode.value}  Caps: review {caps.max_review} / new {caps.max_new}"
    )
    for label, ids in (("Overdue", result.overdue), ("Due", result.due), ("New", result.new)):
        if not ids:
            continue
        typer.secho(f"\n{label}: {len(ids)}", bold=True)
        for card_id in ids:
            state = by_id[card_id].scheduling
            if state is None or state.last_reviewed_at is None:
                when = "never reviewed"
            elif is_overdue(state, now):
                when = f"{-days_until_review(state, now)}d overdue"
            elif is_due_today(state, now):
                when = "due today"
            else:
                when = f"relearn, due in {format_interval(state.interval_days)}"
            level = classify(state, config.mastery_interval_days)
            typer.echo(f"  {card_id}  [{level.value}]  {when}")

    dropped = len(result.dropped_review) + len(result.dropped_new)
    if dropped:
        typer.secho(f"\n{dropped} more cards held back by the caps.", fg="yellow")


@app.command()
def study(
    deck_file: Annotated[
        Path | None, typer.Option("--deck", help="YAML deck file. Defaults to config.")
    ] = None,
    mode: Annotated[StudyMode, typer.Option(help="Study mode; sets the caps.")] = StudyMode.DAILY,
    profile: Annotated[str | None, typer.Option(help="Profile to study as.")] = None,
    application: Annotated[
        str | None, typer.Option(help="Only cards for this application.")
    ] = None,
):
    """[bold green]Study[/bold green] due and new cards interactively."""
    config = _resolve_with_overrides(deck_file=deck_file)
    profile_id = profile or config.profile_id
    repo = get_card_repository(config)
    manager = get_session_manager(config, card_repo=repo)

    card_filter = QueueFilter(profile_id=profile_id, application_id=application)
    try:
        queue_ids = manager.build_queue(card_filter, config.caps_for(mode), _now())
        session = manager.start_session(queue_ids, mode, _now(), profile_id=profile_id)
    except NoCardsAvailable:
        typer.secho("Nothing due. Come back later or add cards.", fg="yellow")
        raise typer.Exit() from None
    except SessionAlreadyActive as e:
        typer.secho(f"{e} Finish or abandon it first.", fg="yellow")
        raise typer.Exit(1) from None
    except CardwiseError as e:
        typer.secho(str(e), fg="red")
        raise typer.Exit(1) from None

    view = view_after(session, manager.get_progress(profile_id), repo.get(session.queue[0]))
    while isinstance(view, Studying):
        card = view.card
        card_id = session.current_card_id
        typer.secho(f"\n[{view.position}] {card.question if card else card_id}", bold=True)
        typer.prompt("Press enter to reveal", default="", show_default=False)
        typer.echo(card.answer if card else "(card missing from deck)")

        answer = typer.prompt("Rate 1=again 2=hard 3=good 4=easy 5=perfect, q=quit")
        if answer.strip().lower() == "q":
            manager.abandon_session(session, _now())
            typer.secho("Session abandoned. Reviews so far are kept.", fg="yellow")
            view = view_after(session, manager.get_progress(profile_id))
            break
        if answer.strip() not in RATING_KEYS:
            typer.secho("Please enter a number from 1 to 5.", fg="red")
            continue

        state = manager.record_review(session, card_id, RATING_KEYS[answer.strip()], _now())
        typer.echo(f"Next review in {format_interval(state.interval_days)}.")

        if session.is_exhausted:
            entry = manager.end_session(session, _now())
            view = view_after(session, manager.get_progress(profile_id), entry=entry)
        else:
            view = view_after(
                session, manager.get_progress(profile_id), repo.get(session.current_card_id)
            )

    if isinstance(view, Complete):
        progress = manager.get_progress(profile_id)
        typer.secho(
            f"\nSession complete: {view.entry.cards_reviewed} cards, "
            f"average rating {view.entry.average_rating:.2f}",
            fg="green",
        )
        typer.echo(
            f"Streak: {progress.current_streak} days (longest {progress.longest_streak})"
        )
    elif isinstance(view, Dashboard):
        typer.echo(f"Current streak: {view.progress.current_streak} days")


@app.command()
def stats(
    deck_file: Annotated[
        Path | None, typer.Option("--deck", help="YAML deck file. Defaults to config.")
    ] = None,
    profile: Annotated[str | None, typer.Option(help="Profile to report on.")] = None,
    application: Annotated[
        str | None, typer.Option(help="Only cards for this application.")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show mastery and due counts for the deck."""
    config = _resolve_with_overrides(deck_file=deck_file)
    card_filter = QueueFilter(profile_id=profile or config.profile_id, application_id=application)
    service = get_stats_service(config)
    now = _now()

    try:
        study_stats = service.get_study_stats(card_filter, now)
        readiness = service.get_readiness_score(card_filter, now)
    except CardwiseError as e:
        typer.secho(str(e), fg="red")
        raise typer.Exit(1) from None

    if json_output:
        typer.echo(json.dumps({**asdict(study_stats), "readiness": readiness}, indent=2))
        return

    typer.echo(
        f"Cards: {study_stats.total}  Due: {study_stats.due_today}  "
        f"Overdue: {study_stats.overdue}  Readiness: {readiness}%"
    )
    typer.echo(
        f"New: {study_stats.new}  Learning: {study_stats.learning}  "
        f"Reviewing: {study_stats.reviewing}  Mastered: {study_stats.mastered}"
    )


@app.command()
def progress(
    profile: Annotated[str | None, typer.Option(help="Profile to report on.")] = None,
):
    """Show streaks and totals as JSON."""
    config = resolve_config()
    manager = get_session_manager(config)
    record = manager.get_progress(profile or config.profile_id)
    typer.echo(json.dumps(_jsonable(asdict(record)), indent=2))


@app.command()
def history(
    profile: Annotated[str | None, typer.Option(help="Profile to report on.")] = None,
    limit: Annotated[int, typer.Option(help="Number of sessions to show.")] = 10,
):
    """List recent completed sessions, newest first."""
    config = resolve_config()
    manager = get_session_manager(config)
    entries = manager.recent_sessions(profile or config.profile_id, limit)
    if not entries:
        typer.secho("No completed sessions yet.", fg="yellow")
        return
    for entry in entries:
        good = sum(n for r, n in entry.ratings_histogram.items() if not r.is_lapse)
        typer.echo(
            f"{entry.started_at:%Y-%m-%d}  {entry.mode.value:<11} "
            f"{entry.cards_reviewed:>3} cards  {good}/{entry.cards_reviewed} good  "
            f"{entry.duration_seconds // 60}m"
        )


@app.command()
def serve(
    port: Annotated[int, typer.Option(help="Port to bind the server to.")] = 8787,
    host: Annotated[str, typer.Option(help="Host to bind the server to.")] = "127.0.0.1",
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP API server."""
    import uvicorn

    uvicorn.run("cardwise.server:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


def run():
    app()
