"""CLI interface for Fractal."""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
from rich.markup import escape

from fractal import __version__
from fractal.cli.formatters import OutputFormatter
from fractal.core.completion_client import CompletionClient
from fractal.core.config import Config
from fractal.core.event_bus import EVENT_GOAL_FAILED, EventBus
from fractal.core.goal_store import GoalStore
from fractal.core.llm_base import CompletionClientBase
from fractal.core.logging import configure_logging
from fractal.core.orchestrator import DeconstructionOrchestrator
from fractal.core.prompt_builder import PromptBuilder
from fractal.schemas.goal import DateRange, validate_new_goal


def parse_month_year(ctx, param, value: Optional[str]) -> Optional[tuple[int, int]]:
    """Click callback turning 'MM/YYYY' into (month, year)."""
    if value is None:
        return None
    try:
        month_text, year_text = value.split("/")
        return int(month_text), int(year_text)
    except ValueError:
        raise click.BadParameter(f"expected MM/YYYY, got {value!r}")


def build_store(config: Config) -> GoalStore:
    """Create the goal store for the configured snapshot and load it."""
    store = GoalStore(config.get_data_file(), event_bus=EventBus())
    store.load()
    return store


def build_client(config: Config) -> CompletionClientBase:
    """Create the completion client from configuration."""
    return CompletionClient(
        credentials=config.credential_provider(),
        endpoint=config.endpoint,
        credential_key=config.credential_key,
        timeout=config.timeout,
    )


@click.group()
@click.version_option(version=__version__, prog_name="fractal")
@click.option(
    "--data-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Goals snapshot file (default: ~/.fractal/goals.json)",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to configuration file (YAML or JSON)",
)
@click.option("--model", "-m", default=None, help="Model name (default: llama3-8b-8192)")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level (default: WARNING)",
)
@click.option("--json-logs", is_flag=True, default=None, help="Emit JSON-formatted logs")
@click.pass_context
def main(ctx, data_file, config_file, model, log_level, json_logs):
    """
    Fractal - break huge goals into laughably small first steps.

    Goals are sent to an OpenAI-compatible chat-completion service (Groq by
    default). Set FRACTAL_API_KEY or GROQ_API_KEY, or put GroqAPIKey in
    ~/.fractal/secrets.yaml.
    """
    config = Config.load(
        cli_args={
            "data_file": data_file,
            "model": model,
            "log_level": log_level,
            "json_logs": json_logs or None,
        },
        config_file=Path(config_file) if config_file else None,
    )
    configure_logging(level=config.log_level, json_output=bool(config.json_logs))
    ctx.obj = config


@main.command()
@click.argument("titles", nargs=-1, required=True)
@click.option("--start", callback=parse_month_year, default=None, help="Start month as MM/YYYY")
@click.option("--end", callback=parse_month_year, default=None, help="End month as MM/YYYY")
@click.pass_obj
def add(config: Config, titles, start, end):
    """Break one or more goals down into steps."""
    formatter = OutputFormatter()

    date_range = None
    if (start is None) != (end is None):
        raise click.UsageError("--start and --end must be given together")
    if start is not None:
        date_range = DateRange(
            start_month=start[0], start_year=start[1], end_month=end[0], end_year=end[1]
        )

    try:
        cleaned = [validate_new_goal(title, date_range) for title in titles]
    except ValueError as e:
        raise click.BadParameter(str(e))

    store = build_store(config)
    orchestrator = DeconstructionOrchestrator(
        store,
        build_client(config),
        prompt_builder=PromptBuilder(model=config.model),
    )

    failures = []
    store.event_bus.subscribe(EVENT_GOAL_FAILED, failures.append)

    results = asyncio.run(orchestrator.add_goals(cleaned, date_range))

    for goal in results:
        if goal is not None:
            formatter.print_success(f"Broke down '{escape(goal.title)}' into {len(goal.steps)} steps")
            formatter.print_goal(goal)
    for failure in failures:
        formatter.print_error(f"{escape(failure.title)}: {failure.message}")

    if failures:
        sys.exit(1)


@main.command(name="list")
@click.pass_obj
def list_goals(config: Config):
    """List goals, most recent first."""
    store = build_store(config)
    OutputFormatter().print_goals(store.list())


@main.command()
@click.argument("index", type=int)
@click.pass_obj
def show(config: Config, index: int):
    """Show the steps of the goal at INDEX (as printed by 'list')."""
    goals = build_store(config).list()
    if not 0 <= index < len(goals):
        raise click.BadParameter(f"no goal at position {index}", param_hint="INDEX")
    OutputFormatter().print_goal(goals[index])


@main.command()
@click.argument("indices", nargs=-1, type=int)
@click.option("--id", "goal_id", type=click.UUID, default=None, help="Delete the goal with this id")
@click.option("--yes", "-y", is_flag=True, default=False, help="Skip the confirmation prompt")
@click.pass_obj
def delete(config: Config, indices, goal_id, yes):
    """Delete goals by position (INDICES) or by --id."""
    formatter = OutputFormatter()
    if not indices and goal_id is None:
        raise click.UsageError("give at least one position or --id")
    if indices and goal_id is not None:
        raise click.UsageError("give positions or --id, not both")

    store = build_store(config)
    goals = store.list()

    if goal_id is not None:
        goal = store.get(goal_id)
        if goal is None:
            formatter.print_warning(f"No goal with id {goal_id}")
            return
        targets = [goal]
    else:
        for index in indices:
            if not 0 <= index < len(goals):
                raise click.BadParameter(f"no goal at position {index}", param_hint="INDICES")
        targets = [goals[index] for index in sorted(set(indices))]

    if not yes:
        names = ", ".join(f'"{goal.title}"' for goal in targets)
        click.confirm(
            f"Are you sure you want to delete {names}? This action cannot be undone.",
            abort=True,
        )

    if goal_id is not None:
        store.remove(goal_id)
        removed = targets
    else:
        removed = store.remove_at(indices)

    for goal in removed:
        formatter.print_success(f"Deleted '{escape(goal.title)}'")


@main.command()
@click.option("--init", "init_path", type=click.Path(dir_okay=False), default=None,
              help="Write the effective configuration to this file")
@click.pass_obj
def config(config: Config, init_path):
    """Show the effective configuration."""
    formatter = OutputFormatter()
    data = config.to_dict()
    api_key = config.credential_provider().get(config.credential_key)
    data["api_key"] = f"{api_key[:4]}...{api_key[-4:]}" if api_key and len(api_key) > 8 else (
        "***" if api_key else None
    )
    formatter.print_json(data)

    if init_path:
        path = Path(init_path)
        config.save(path, format="json" if path.suffix == ".json" else "yaml")
        formatter.print_success(f"Configuration written to {path}")


if __name__ == "__main__":
    main()
