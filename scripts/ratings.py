#!/usr/bin/env python3
"""League rating jobs: recalculation, per-match updates, initialization and leaderboards."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from db import DB_URL_ENV_VAR, DEFAULT_DB_URL, create_db_engine, create_session_factory
from domain.pipeline import RatingUpdateResult, recalculate_all_ratings, update_ratings_for_match
from domain.ratings.common import RatingScope
from domain.ratings.protocol import RatingCalculator
from domain.ratings.registry import RatingSystemDescriptor, get, get_all
from repositories.ratings.common import fetch_participant_names, fetch_scopes, resolve_scope_id
from repositories.ratings.repository import PLAYER_RATING_REPOSITORY

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="League rating commands.",
)

DbUrlOption = Annotated[
    str,
    typer.Option(
        "--db-url",
        envvar=DB_URL_ENV_VAR,
        help="Database URL. Defaults to the local tt_league postgres instance.",
    ),
]
ScopeOption = Annotated[
    RatingScope,
    typer.Option("--scope", help="Rate within a league or a tournament."),
]
AlgorithmOption = Annotated[
    str,
    typer.Option("--algorithm", help="Registered rating algorithm key."),
]
ConfigDirOption = Annotated[
    Path | None,
    typer.Option("--config-dir", help="Optional override for the algorithm config directory."),
]
ConfigNameOption = Annotated[
    str | None,
    typer.Option("--config-name", help="Config filename or system name (for example: default.toml)."),
]
DryRunOption = Annotated[
    bool,
    typer.Option("--dry-run", help="Compute ratings without writing them."),
]


@app.callback()
def main(
    log_level: Annotated[
        str,
        typer.Option("--log-level", help="Log level for stderr output."),
    ] = "WARNING",
) -> None:
    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise typer.BadParameter(f"Unknown log level '{log_level}'", param_hint="--log-level")
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")


def _load_calculator(
    algorithm: str,
    config_dir: Path | None,
    config_name: str | None,
) -> RatingCalculator:
    try:
        descriptor = get(algorithm)
    except KeyError as exc:
        raise typer.BadParameter(str(exc.args[0]), param_hint="--algorithm") from exc

    try:
        config, calculator = descriptor.load_calculator(config_dir, config_name)
    except KeyError as exc:
        raise typer.BadParameter(str(exc.args[0]), param_hint="--config-name") from exc

    typer.echo(f"algorithm={descriptor.algorithm} system={config.name} config={config.file_path.name}")
    typer.echo(" ".join(f"{key}={value}" for key, value in config.as_config_json().items()))
    return calculator


def _resolve_scope(session_factory, scope: RatingScope, id_or_slug: str) -> str:
    with session_factory() as session:
        scope_id = resolve_scope_id(session, scope, id_or_slug)
    if scope_id is None:
        raise typer.BadParameter(f"No {scope.value} matches '{id_or_slug}'", param_hint="scope_id")
    return scope_id


def _report(result: RatingUpdateResult, *, label: str) -> None:
    if not result.success:
        typer.echo(f"{label} failed: {result.error}", err=True)
        raise typer.Exit(code=1)

    prefix = "[dry-run] " if result.dry_run else ""
    typer.echo(
        f"{prefix}{label} "
        f"updated_players={result.updated_players} "
        f"total_matches_processed={result.total_matches_processed}"
    )
    for change in result.player_ratings:
        typer.echo(
            f"  player={change.player_id} "
            f"{change.old_rating} -> {change.new_rating} ({change.rating_change:+d})"
        )


@app.command()
def recalculate(
    scope_id: Annotated[str, typer.Argument(help="League or tournament id or slug.")],
    scope: ScopeOption = RatingScope.LEAGUE,
    db_url: DbUrlOption = DEFAULT_DB_URL,
    algorithm: AlgorithmOption = "usatt",
    config_dir: ConfigDirOption = None,
    config_name: ConfigNameOption = None,
    dry_run: DryRunOption = False,
) -> None:
    """Recalculate every rating in one league or tournament."""
    calculator = _load_calculator(algorithm, config_dir, config_name)
    engine = create_db_engine(db_url)
    PLAYER_RATING_REPOSITORY.ensure_schema(engine)
    session_factory = create_session_factory(engine)

    resolved_id = _resolve_scope(session_factory, scope, scope_id)
    result = recalculate_all_ratings(
        session_factory=session_factory,
        store=PLAYER_RATING_REPOSITORY,
        calculator=calculator,
        scope=scope,
        scope_id=resolved_id,
        dry_run=dry_run,
    )
    _report(result, label=f"recalculated {scope.value}={resolved_id}")


@app.command("update-match")
def update_match(
    scope_id: Annotated[str, typer.Argument(help="League or tournament id or slug.")],
    match_id: Annotated[str, typer.Argument(help="Completed match id.")],
    scope: ScopeOption = RatingScope.LEAGUE,
    db_url: DbUrlOption = DEFAULT_DB_URL,
    algorithm: AlgorithmOption = "usatt",
    config_dir: ConfigDirOption = None,
    config_name: ConfigNameOption = None,
    dry_run: DryRunOption = False,
) -> None:
    """Update ratings after one match was completed or approved."""
    calculator = _load_calculator(algorithm, config_dir, config_name)
    engine = create_db_engine(db_url)
    PLAYER_RATING_REPOSITORY.ensure_schema(engine)
    session_factory = create_session_factory(engine)

    resolved_id = _resolve_scope(session_factory, scope, scope_id)
    result = update_ratings_for_match(
        session_factory=session_factory,
        store=PLAYER_RATING_REPOSITORY,
        calculator=calculator,
        scope=scope,
        scope_id=resolved_id,
        match_id=match_id,
        dry_run=dry_run,
    )
    _report(result, label=f"updated match={match_id} {scope.value}={resolved_id}")


@app.command()
def initialize(
    scope: ScopeOption = RatingScope.LEAGUE,
    db_url: DbUrlOption = DEFAULT_DB_URL,
    algorithm: AlgorithmOption = "usatt",
    config_dir: ConfigDirOption = None,
    config_name: ConfigNameOption = None,
    dry_run: DryRunOption = False,
) -> None:
    """Seed and recompute ratings for every league (or tournament) in the database."""
    calculator = _load_calculator(algorithm, config_dir, config_name)
    engine = create_db_engine(db_url)
    PLAYER_RATING_REPOSITORY.ensure_schema(engine)
    session_factory = create_session_factory(engine)

    with session_factory() as session:
        scopes = fetch_scopes(session, scope)
    typer.echo(f"found {len(scopes)} {scope.value}s")

    failures = 0
    for scope_id, name in scopes:
        result = recalculate_all_ratings(
            session_factory=session_factory,
            store=PLAYER_RATING_REPOSITORY,
            calculator=calculator,
            scope=scope,
            scope_id=scope_id,
            seed_participants=True,
            dry_run=dry_run,
        )
        if not result.success:
            failures += 1
            typer.echo(f"{scope.value}={scope_id} name={name} failed: {result.error}", err=True)
            continue
        typer.echo(
            f"{scope.value}={scope_id} name={name} "
            f"updated_players={result.updated_players} "
            f"total_matches_processed={result.total_matches_processed}"
        )

    if failures:
        raise typer.Exit(code=1)


@app.command("show-top")
def show_top(
    scope_id: Annotated[str, typer.Argument(help="League or tournament id or slug.")],
    scope: ScopeOption = RatingScope.LEAGUE,
    db_url: DbUrlOption = DEFAULT_DB_URL,
    top_n: Annotated[int, typer.Option("--top-n", help="Number of players to print.")] = 20,
    include_provisional: Annotated[
        bool,
        typer.Option("--include-provisional/--established-only", help="Include provisional ratings."),
    ] = True,
) -> None:
    """Print the highest-rated players in one league or tournament."""
    if top_n <= 0:
        raise typer.BadParameter("--top-n must be greater than 0")

    engine = create_db_engine(db_url)
    session_factory = create_session_factory(engine)
    resolved_id = _resolve_scope(session_factory, scope, scope_id)

    with session_factory() as session:
        snapshots = PLAYER_RATING_REPOSITORY.top_ratings(
            session,
            scope,
            resolved_id,
            limit=top_n,
            include_provisional=include_provisional,
        )
        names = fetch_participant_names(session, [snapshot.player_id for snapshot in snapshots])

    if not snapshots:
        typer.echo("no ratings found")
        return

    for rank, snapshot in enumerate(snapshots, start=1):
        marker = " (P)" if snapshot.is_provisional else ""
        typer.echo(
            f"{rank:>3}. {names.get(snapshot.player_id, snapshot.player_id)}"
            f"  rating={snapshot.current_rating}{marker}"
            f"  matches={snapshot.matches_played}"
        )


@app.command()
def list_systems() -> None:
    """Print all registered rating algorithms."""
    descriptors: list[RatingSystemDescriptor] = get_all()
    if not descriptors:
        typer.echo("no registered systems")
        return

    for descriptor in descriptors:
        typer.echo(f"{descriptor.algorithm} ({descriptor.label}) config_dir={descriptor.config_dir}")


if __name__ == "__main__":
    app()
