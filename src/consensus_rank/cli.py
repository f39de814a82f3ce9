"""CLI entry point for consensus-rank.

Reads items or votes from JSON files and prints rankings, statement
statistics and opinion clusters.
"""

import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .backends import BackendRegistry, BackendSelector, probe_backend
from .config import BACKEND_CHOICES, EngineConfig, PRESETS
from .consensus import analyze_consensus
from .errors import ConsensusRankError
from .log import configure_logging
from .models import parse_iso_datetime
from .ranking import score_items
from .scoring import STRATEGIES

console = Console()

BAND_STYLES = {"agree": "green", "mixed": "yellow", "disagree": "red"}


def _load_records(path: str, key: str) -> list[dict]:
    """Load a JSON array of objects, or the ``key`` array of a JSON object.

    Raises:
        ValueError: If the file is not JSON or does not hold a list of objects
    """
    data = json.loads(Path(path).read_text())
    if isinstance(data, dict):
        data = data.get(key, [])
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON array or a '{key}' list")
    for position, record in enumerate(data):
        if not isinstance(record, dict):
            raise ValueError(
                f"Record {position} is a {type(record).__name__}, "
                f"expected a JSON object ({path})"
            )
    return data


def _parse_now(ctx, param, value):
    """Validate --now as ISO-8601; None means the current time."""
    if value is None:
        return None
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise click.BadParameter(f"'{value}' is not an ISO-8601 timestamp")


def _build_config(backend, preset=None, clusters=None) -> EngineConfig:
    config = EngineConfig()
    if backend:
        config.backend = backend
    if preset:
        config.apply_preset(preset)
    if clusters:
        config.cluster_count = clusters
    configure_logging(config.log_level)
    return config


@click.group()
def cli():
    """consensus-rank: rank content and find where a group agrees."""
    pass


@cli.command()
@click.argument("items_json", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--strategy",
    type=click.Choice(STRATEGIES),
    default="newest",
    help="Scoring strategy. Default: newest",
)
@click.option(
    "--now",
    default=None,
    callback=_parse_now,
    help="Reference time for trending (ISO-8601). Default: current time",
)
@click.option(
    "--exclude",
    multiple=True,
    help="Item id to leave out (repeatable), e.g. already seen posts",
)
@click.option(
    "--preset",
    type=click.Choice(list(PRESETS.keys())),
    default=None,
    help="Trending weight preset (overrides env vars)",
)
@click.option(
    "--backend",
    type=click.Choice(BACKEND_CHOICES),
    default=None,
    help="Compute backend. Default: from .env or auto",
)
@click.option("--limit", type=int, default=None, help="Show only the top N items")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a table")
def rank(items_json, strategy, now, exclude, preset, backend, limit, as_json):
    """Rank items from a JSON file."""
    config = _build_config(backend, preset=preset)

    try:
        records = _load_records(items_json, "items")
        ranked = score_items(
            records,
            strategy,
            config=config,
            now=now,
            exclude=exclude,
            backend=BackendSelector(config.backend),
        )
    except (ConsensusRankError, ValueError) as e:
        console.print(f"[red]✗ {escape(str(e))}")
        sys.exit(1)

    if limit:
        ranked = ranked[:limit]

    if as_json:
        click.echo(
            json.dumps(
                [{**item.to_dict(), "score": score} for item, score in ranked],
                indent=2,
                default=str,
            )
        )
        return

    table = Table(title=f"Ranking: {strategy}", border_style="cyan")
    table.add_column("#", justify="right")
    table.add_column("Id", style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Likes", justify="right")
    table.add_column("Downvotes", justify="right")
    table.add_column("Replies", justify="right")
    table.add_column("Reposts", justify="right")

    for position, (item, score) in enumerate(ranked, 1):
        table.add_row(
            str(position),
            item.id,
            f"{score:.4f}",
            str(item.like_count),
            str(item.downvote_count),
            str(item.reply_count),
            str(item.repost_count),
        )

    console.print(table)


@cli.command()
@click.argument("votes_json", type=click.Path(exists=True, dir_okay=False))
@click.option("--clusters", type=int, default=None, help="Fixed number of opinion groups")
@click.option(
    "--backend",
    type=click.Choice(BACKEND_CHOICES),
    default=None,
    help="Compute backend. Default: from .env or auto",
)
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of tables")
def consensus(votes_json, clusters, backend, as_json):
    """Analyze agree/disagree/pass votes from a JSON file."""
    config = _build_config(backend, clusters=clusters)

    try:
        records = _load_records(votes_json, "votes")
        result = analyze_consensus(
            records, config=config, backend=BackendSelector(config.backend)
        )
    except (ConsensusRankError, ValueError) as e:
        console.print(f"[red]✗ {escape(str(e))}")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if result.total_participants == 0:
        console.print("[yellow]No votes found. Nothing to analyze.")
        return

    _print_consensus(result)


@cli.command()
def backends():
    """List compute backends and whether they run here."""
    table = Table(title="Backends", border_style="cyan")
    table.add_column("Backend", style="bold")
    table.add_column("Available")
    table.add_column("Detail")

    for name in BackendRegistry.list_backends():
        available, detail = probe_backend(name)
        table.add_row(
            name,
            "[green]yes" if available else "[red]no",
            detail,
        )

    console.print(table)


@cli.command()
def check():
    """Verify configuration."""
    config = EngineConfig()
    issues = config.validate()

    if issues:
        console.print("[bold red]Configuration issues found:\n")
        for issue in issues:
            console.print(f"  [red]✗ {issue}")
        sys.exit(1)

    console.print("[bold green]✓ Configuration looks good!")
    console.print(
        f"  Trending: w_reply={config.w_reply}, w_repost={config.w_repost}, "
        f"gravity={config.gravity}"
    )
    console.print(f"  Wilson confidence: {config.wilson_confidence}")
    console.print(
        f"  Clusters: {config.cluster_count or 'auto'} "
        f"(max {config.max_clusters}, {config.max_iterations} iterations)"
    )
    console.print(f"  Backend: {config.backend}")


@cli.command()
def presets():
    """List trending weight presets."""
    table = Table(title="Trending Presets", border_style="cyan")
    table.add_column("Preset", style="bold")
    table.add_column("w_reply", justify="right")
    table.add_column("w_repost", justify="right")
    table.add_column("Gravity", justify="right")
    table.add_column("Description")

    for name, info in PRESETS.items():
        table.add_row(
            name,
            f"{info['w_reply']:.1f}",
            f"{info['w_repost']:.1f}",
            f"{info['gravity']:.1f}",
            info["description"],
        )

    console.print(table)


def _print_consensus(result):
    """Print statement and cluster tables to the console."""
    console.print(
        Panel(
            f"[bold cyan]{result.total_participants} participant"
            f"{'s' if result.total_participants != 1 else ''} · "
            f"{result.cluster_count} opinion group"
            f"{'s' if result.cluster_count != 1 else ''}",
            border_style="cyan",
        )
    )

    table = Table(title="Statements", border_style="cyan")
    table.add_column("Statement", style="bold")
    table.add_column("Agree", justify="right")
    table.add_column("Disagree", justify="right")
    table.add_column("Pass", justify="right")
    table.add_column("Agreement", justify="right")
    table.add_column("Divisiveness", justify="right")
    table.add_column("Group consensus", justify="right")

    for s in result.statements:
        style = BAND_STYLES.get(s.band, "white")
        table.add_row(
            s.statement_id,
            str(s.agree_count),
            str(s.disagree_count),
            str(s.pass_count),
            f"[{style}]{s.agreement_ratio:.0%}",
            f"{s.divisiveness:.0%}",
            f"{s.group_consensus:.0%}",
        )
    console.print(table)

    groups = Table(title="Opinion Groups", border_style="cyan")
    groups.add_column("Group", style="bold")
    groups.add_column("Members", justify="right")
    groups.add_column("Avg agreement", justify="right")
    groups.add_column("Participants")

    for c in result.clusters:
        groups.add_row(
            f"Group {c.cluster_id + 1}",
            str(c.member_count),
            f"{c.avg_agreement:.0%}",
            ", ".join(c.member_ids),
        )
    console.print(groups)
    console.print(f"[dim]Backend: {result.backend}")


if __name__ == "__main__":
    cli()
