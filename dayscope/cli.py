# DayScope
# Copyright (C) 2026 StrateCode
# Licensed under the GNU Affero General Public License v3 (AGPLv3)

"""Command-line interface for DayScope."""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv

from dayscope import __version__, configure_logging
from dayscope.calendar_client import GoogleCalendarClient, select_planning_events
from dayscope.effort import parse_override
from dayscope.estimator_client import OpenAIEstimatorClient
from dayscope.github_client import GitHubClient, parse_repositories
from dayscope.linear_client import LinearClient
from dayscope.models import WorkflowState
from dayscope.orderer import Orderer
from dayscope.plan_generator import PlanGenerator
from dayscope.preferences import PreferenceStore
from dayscope.sources import SourceSnapshot, fetch_work_items

# Load environment variables from .env file
load_dotenv()

# Set up logging
logger = logging.getLogger(__name__)


class Config:
    """Configuration management for DayScope."""

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.github_token = os.environ.get('GITHUB_TOKEN', '')
        self.github_repositories = os.environ.get('GITHUB_REPOSITORIES', '')
        self.linear_api_key = os.environ.get('LINEAR_API_KEY', '')
        self.openai_api_key = os.environ.get('OPENAI_API_KEY', '')
        self.openai_model = os.environ.get('OPENAI_MODEL', OpenAIEstimatorClient.DEFAULT_MODEL)
        self.calendar_token = os.environ.get('GOOGLE_CALENDAR_TOKEN', '')
        self.calendar_id = os.environ.get('GOOGLE_CALENDAR_ID', 'primary')
        self.max_hours = os.environ.get('DAYSCOPE_MAX_HOURS', '6')
        self.preferences_path = os.environ.get(
            'DAYSCOPE_PREFERENCES', os.path.join('.dayscope', 'preferences.json')
        )

    def validate(self) -> tuple[bool, Optional[str]]:
        """
        Validate that required configuration is present.

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not self.github_token and not self.linear_api_key:
            return False, "GITHUB_TOKEN or LINEAR_API_KEY environment variable is required"

        if self.github_token:
            repositories, invalid = parse_repositories(self.github_repositories)
            if invalid:
                return False, f"Invalid GITHUB_REPOSITORIES entries: {', '.join(invalid)}"
            if not repositories:
                return False, "GITHUB_REPOSITORIES is required when GITHUB_TOKEN is set"

        if parse_override(self.max_hours) is None:
            return False, f"DAYSCOPE_MAX_HOURS must be a positive number (received: {self.max_hours})"

        return True, None


def _load_config() -> Config:
    config = Config()
    is_valid, error_message = config.validate()
    if not is_valid:
        logger.error(f"Configuration validation failed: {error_message}")
        click.echo("❌ " + click.style("Configuration Error", fg='red', bold=True), err=True)
        click.echo(f"   {error_message}", err=True)
        click.echo("", err=True)
        click.echo("   Create a .env file in the project root with:", err=True)
        click.echo("   " + click.style("GITHUB_TOKEN", fg='cyan') + "='ghp_...'", err=True)
        click.echo("   " + click.style("GITHUB_REPOSITORIES", fg='cyan') + "='owner/repo,owner/other'", err=True)
        click.echo("   " + click.style("LINEAR_API_KEY", fg='cyan') + "='lin_api_...'", err=True)
        sys.exit(1)
    return config


def _fetch(config: Config, with_calendar: bool = False) -> SourceSnapshot:
    github_client = None
    if config.github_token:
        repositories, _ = parse_repositories(config.github_repositories)
        github_client = GitHubClient(config.github_token, repositories)

    linear_client = LinearClient(config.linear_api_key) if config.linear_api_key else None

    calendar_client = None
    if with_calendar and config.calendar_token:
        calendar_client = GoogleCalendarClient(config.calendar_token, config.calendar_id)

    click.echo("🔄 " + click.style("Fetching work items...", fg='cyan'), err=True)
    snapshot = fetch_work_items(github_client, linear_client, calendar_client)
    for error in snapshot.errors:
        click.echo("⚠️  " + click.style(error, fg='yellow'), err=True)
    return snapshot


@click.group()
@click.version_option(version=__version__, prog_name='DayScope')
@click.option('--debug', is_flag=True, help='Enable detailed logging for debugging')
@click.pass_context
def cli(ctx, debug: bool):
    """DayScope - Time-boxed daily plans from pull requests and issues.

    \b
    Examples:
      dayscope plan                  # Plan today with the default budget
      dayscope plan --hours 5 -o plan.md
      dayscope items                 # List actionable items by category
      dayscope pin ENG-123           # Put an item first in its category
      dayscope set-hours ENG-123 3   # Override an estimate
    """
    ctx.ensure_object(dict)
    configure_logging(logging.DEBUG if debug else logging.WARNING)


@cli.command()
@click.option('--hours', type=float, metavar='FLOAT',
              help='Time budget in hours (default: DAYSCOPE_MAX_HOURS or 6)')
@click.option('--output', '-o', type=click.Path(), metavar='PATH',
              help='Save plan to file (default: stdout)')
@click.option('--no-calendar', is_flag=True, help='Ignore calendar events')
@click.option('--include-all-day', is_flag=True, help='Count all-day events as meetings')
@click.option('--include-declined', is_flag=True, help='Count declined events as meetings')
def plan(hours: Optional[float], output: Optional[str], no_calendar: bool,
         include_all_day: bool, include_declined: bool):
    """Generate today's scoped work plan.

    \b
    Meetings from the calendar reduce the available hours (minimum 0.5h).
    Items are taken in category order until the budget is used; one item
    may overflow the budget and is marked as such.
    """
    config = _load_config()
    preferences = PreferenceStore(config.preferences_path).load()
    snapshot = _fetch(config, with_calendar=not no_calendar)

    estimator = None
    if config.openai_api_key:
        estimator = OpenAIEstimatorClient(config.openai_api_key, model=config.openai_model)

    generator = PlanGenerator(estimator=estimator)
    items = generator.build_items(snapshot.pull_requests, snapshot.issues)
    events = select_planning_events(snapshot.events, include_all_day, include_declined)

    daily_plan = generator.generate_plan(
        items,
        max_hours=hours if hours is not None else config.max_hours,
        custom_hours=preferences.custom_hours,
        custom_order=preferences.custom_order,
        prioritized_ids=preferences.prioritized_ids,
        excluded_ids=preferences.excluded_ids,
        events=events,
    )
    daily_plan.errors = snapshot.errors + daily_plan.errors

    markdown_output = daily_plan.to_markdown()
    if output:
        output_path = Path(output)
        output_path.write_text(markdown_output)
        click.echo("✅ " + click.style("Plan saved to:", fg='green', bold=True) + f" {output_path}", err=True)
    else:
        click.echo()
        click.echo(markdown_output)

    status_color = 'red' if daily_plan.is_over_budget else 'green'
    click.echo(
        "📊 " + click.style(f"{daily_plan.total_hours:g}h", fg=status_color, bold=True)
        + f" planned of {daily_plan.available_hours:g}h available"
        + f" ({len(daily_plan.items)} items, {len(daily_plan.deferred_items)} deferred)",
        err=True,
    )


@cli.command()
def items():
    """List actionable items grouped by category."""
    config = _load_config()
    preferences = PreferenceStore(config.preferences_path).load()
    snapshot = _fetch(config)

    generator = PlanGenerator()
    work_items = generator.build_items(snapshot.pull_requests, snapshot.issues)
    # Excluded items stay listed (flagged) so they can be included again
    pool = generator.planning_pool(work_items, prioritized_ids=preferences.prioritized_ids)
    ordered = generator.orderer.order(pool, preferences.custom_order)
    stale = [item for item in work_items if item.workflow_state == WorkflowState.STALE]

    if not ordered and not stale:
        click.echo("No actionable items.")
        return

    excluded = set(preferences.excluded_ids)
    current_category = None
    for item in ordered:
        if item.category != current_category:
            current_category = item.category
            click.echo(click.style(current_category.label, fg='blue', bold=True))
        flags = []
        if item.is_pinned:
            flags.append("pinned")
        if excluded & set(item.keys()):
            flags.append("excluded")
        override = parse_override(generator.resolver.find_override(item, preferences.custom_hours))
        if override is not None:
            flags.append(f"{override:g}h")
        suffix = f" ({', '.join(flags)})" if flags else ""
        click.echo(f"  [{item.id}] {item.title} - {item.workflow_state.value}{suffix}")

    if stale:
        click.echo(click.style("Stale", fg='yellow', bold=True))
        for item in stale:
            click.echo(f"  [{item.id}] {item.title}")


@cli.command()
@click.argument('item_id')
@click.option('--remove', is_flag=True, help='Unpin the item')
def pin(item_id: str, remove: bool):
    """Pin an item to the top of its category."""
    store = PreferenceStore(Config().preferences_path)
    preferences = store.load()
    if remove:
        preferences.prioritized_ids = [i for i in preferences.prioritized_ids if i != item_id]
    elif item_id not in preferences.prioritized_ids:
        preferences.prioritized_ids.append(item_id)
    store.save(preferences)
    click.echo(f"{'Unpinned' if remove else 'Pinned'} {item_id}")


@cli.command()
@click.argument('item_id')
@click.option('--remove', is_flag=True, help='Include the item again')
def exclude(item_id: str, remove: bool):
    """Leave an item out of planning."""
    store = PreferenceStore(Config().preferences_path)
    preferences = store.load()
    if remove:
        preferences.excluded_ids = [i for i in preferences.excluded_ids if i != item_id]
    elif item_id not in preferences.excluded_ids:
        preferences.excluded_ids.append(item_id)
    store.save(preferences)
    click.echo(f"{'Included' if remove else 'Excluded'} {item_id}")


@cli.command(name='set-hours')
@click.argument('item_id')
@click.argument('hours')
def set_hours(item_id: str, hours: str):
    """Override the estimate of an item. Use 0 to clear the override."""
    store = PreferenceStore(Config().preferences_path)
    preferences = store.load()
    value = parse_override(hours)
    if value is None:
        preferences.custom_hours.pop(item_id, None)
        click.echo(f"Cleared custom estimate for {item_id}")
    else:
        preferences.custom_hours[item_id] = value
        click.echo(f"Set {item_id} to {value:g}h")
    store.save(preferences)


@cli.command()
@click.argument('item_id')
@click.option('--before', 'before_id', metavar='ITEM_ID',
              help='Place the item before this one (default: end of category)')
def move(item_id: str, before_id: Optional[str]):
    """Reorder an item within its category."""
    config = _load_config()
    store = PreferenceStore(config.preferences_path)
    preferences = store.load()
    snapshot = _fetch(config)

    generator = PlanGenerator()
    work_items = generator.build_items(snapshot.pull_requests, snapshot.issues)
    updated = Orderer().move(work_items, preferences.custom_order, item_id, before_id)

    if updated.to_dict() == preferences.custom_order.to_dict():
        click.echo(click.style(f"Order unchanged for {item_id}", fg='yellow'), err=True)
        return

    preferences.custom_order = updated
    store.save(preferences)
    click.echo(f"Moved {item_id}")


if __name__ == '__main__':
    cli()
