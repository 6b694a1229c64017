"""unhooker CLI for inspecting batch configuration - Tyro implementation."""

import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import attrs
import tyro
from rich.console import Console
from rich.table import Table

from unhooker.builders import parse_entries
from unhooker.config import CONFIG_FILENAME, UnhookerConfig, get_config
from unhooker.exceptions import ConfigError
from unhooker.queue.matching import MatchMode, matches


# Subcommand definitions using attrs
@attrs.define
class Check:
    """Validate every batch in an unhooker.yaml file."""

    config: Annotated[Path | None, tyro.conf.arg(aliases=["-c"])] = None
    """Path to unhooker.yaml (defaults to the discovered configuration)."""


@attrs.define
class Match:
    """Test whether a class name matches a target under a matching mode."""

    observed: Annotated[str, tyro.conf.Positional]
    """Class name of the callback owner."""

    target: Annotated[str, tyro.conf.Positional]
    """Class name being searched for."""

    strict: bool = False
    """Require exact equality instead of substring containment."""

    case_sensitive: bool = False
    """Compare without casefolding."""


@attrs.define
class ShowConfig:
    """Show the resolved unhooker configuration."""

    config: Annotated[Path | None, tyro.conf.arg(aliases=["-c"])] = None
    """Path to unhooker.yaml (defaults to the discovered configuration)."""

    json: bool = False
    """Output as JSON."""


Command = (
    Annotated[Check, tyro.conf.subcommand(name="check")]
    | Annotated[Match, tyro.conf.subcommand(name="match")]
    | Annotated[ShowConfig, tyro.conf.subcommand(name="show-config")]
)


def setup_logging() -> None:
    """Configure logging with 100-character text width."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)-20s - %(levelname)-8s - %(message).100s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def load_config(path: Path | None) -> UnhookerConfig:
    """Load configuration from a path, or discover it.

    Exits with status 1 if the file is missing or invalid.
    """
    if path is None:
        try:
            return get_config()
        except ConfigError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

    if path.is_dir():
        path = path / CONFIG_FILENAME
    if not path.exists():
        print(f"Error: Configuration not found at {path}", file=sys.stderr)
        sys.exit(1)

    try:
        return UnhookerConfig.from_yaml(path)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def check_config(config: UnhookerConfig, console: Console | None = None) -> int:
    """Parse every batch and print its entries and problems.

    Args:
        config: Configuration to check
        console: Rich console for output

    Returns:
        Number of problems found
    """
    console = console or Console()

    if not config.batches:
        console.print("[yellow]No batches configured[/yellow]")
        return 0

    problems: list[tuple[str, str]] = []
    table = Table(title="Queued Entries")
    table.add_column("Batch", style="cyan")
    table.add_column("Operation")
    table.add_column("Hook", style="green")
    table.add_column("Priority", justify="right")
    table.add_column("Target")
    table.add_column("Conditional")
    table.add_column("Commit")

    for batch in config.batches:
        label = batch.label

        try:
            batch.load_condition()
        except ValueError as e:
            problems.append((label, f"condition: {e}"))

        entries = parse_entries(
            batch.operation,
            batch.entries,
            error_callback=lambda e, label=label: problems.append((label, str(e))),
        )

        priority_default = config.default_priority if batch.default_priority is None else batch.default_priority
        hook_priority = config.hook_priority if batch.hook_priority is None else batch.hook_priority
        commit = f"on {batch.hook} @ {hook_priority}" if batch.hook else "immediate"

        for entry in entries:
            priority = priority_default if entry.priority is None else entry.priority
            table.add_row(
                label,
                batch.operation,
                entry.hook_name,
                str(priority),
                entry.payload.describe(),
                "yes" if entry.condition is not None else "no",
                commit,
            )

    console.print(table)

    if problems:
        console.print(f"\n[bold red]{len(problems)} problem(s) found:[/bold red]")
        for label, message in problems:
            console.print(f"  [red]✗[/red] [cyan]{label}[/cyan]: {message}")
    else:
        console.print("\n[green]✓ All entries valid[/green]")

    return len(problems)


def show_config(config: UnhookerConfig, json_output: bool = False, console: Console | None = None) -> None:
    """Print the resolved configuration."""
    data = config.model_dump(mode="json")

    if json_output:
        print(json.dumps(data, indent=2))
        return

    console = console or Console()
    table = Table(title="unhooker Configuration", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    for key in ("config_path", "debug", "default_priority", "hook_priority", "strict_matching", "case_sensitive"):
        table.add_row(key, str(data.get(key)))
    table.add_row("batches", ", ".join(b.label for b in config.batches) or "(none)")

    console.print(table)


def main(cmd: Annotated[Command, tyro.conf.arg(name="")]) -> None:
    """unhooker - Conditional hook removal and override queues.

    Inspect batch files that remove callbacks from, or force values on,
    a host application's hooks.
    """
    setup_logging()

    if isinstance(cmd, Check):
        config = load_config(cmd.config)
        config.apply_logging()
        problems = check_config(config)
        sys.exit(1 if problems else 0)

    elif isinstance(cmd, Match):
        mode = MatchMode.from_flags(cmd.strict, cmd.case_sensitive)
        result = matches(cmd.observed, cmd.target, cmd.strict, cmd.case_sensitive)
        verdict = "[green]match[/green]" if result else "[red]no match[/red]"
        Console().print(f"{cmd.observed!r} vs {cmd.target!r} ({mode.value}): {verdict}")
        sys.exit(0 if result else 1)

    elif isinstance(cmd, ShowConfig):
        config = load_config(cmd.config)
        show_config(config, json_output=cmd.json)


def entry_point() -> None:
    """Entry point for the unhooker command."""
    tyro.cli(main)


if __name__ == "__main__":
    entry_point()
