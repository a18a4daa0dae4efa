# DayScope
# Copyright (C) 2026 StrateCode
# Licensed under the GNU Affero General Public License v3 (AGPLv3)

"""Concurrent collection of records from the upstream work sources."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, List, Optional, Tuple, TypeVar

from dayscope.calendar_client import GoogleCalendarClient
from dayscope.github_client import GitHubClient
from dayscope.linear_client import LinearClient
from dayscope.models import CalendarEvent, IssueRecord, PullRequestRecord

# Set up logging
logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class SourceSnapshot:
    """Records fetched for one planning run, with per-source errors."""
    pull_requests: List[PullRequestRecord] = field(default_factory=list)
    issues: List[IssueRecord] = field(default_factory=list)
    events: List[CalendarEvent] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def _guarded(source: str, fetch: Callable[[], List[T]]) -> Tuple[List[T], Optional[str]]:
    # Any failure of one source yields an empty list plus a source-scoped error
    try:
        return fetch(), None
    except Exception as e:
        logger.error(f"{source} fetch failed: {e}")
        return [], f"{source}: {e}"


def fetch_work_items(github_client: Optional[GitHubClient] = None,
                     linear_client: Optional[LinearClient] = None,
                     calendar_client: Optional[GoogleCalendarClient] = None,
                     day: Optional[date] = None) -> SourceSnapshot:
    """
    Fetch pull requests, issues and calendar events concurrently.

    A failing source does not abort the others; its error is reported in the
    snapshot instead. Unconfigured sources (None) are skipped silently.

    Args:
        github_client: Pull request source
        linear_client: Issue source
        calendar_client: Calendar source
        day: Calendar day to fetch (default: today)

    Returns:
        SourceSnapshot
    """
    snapshot = SourceSnapshot()

    with ThreadPoolExecutor(max_workers=3, thread_name_prefix="dayscope-source") as executor:
        pr_future = issue_future = event_future = None
        if github_client is not None:
            pr_future = executor.submit(_guarded, "GitHub", github_client.fetch_actionable_pull_requests)
        if linear_client is not None:
            issue_future = executor.submit(_guarded, "Linear", linear_client.fetch_assigned_issues)
        if calendar_client is not None:
            event_future = executor.submit(_guarded, "Calendar", lambda: calendar_client.fetch_events(day))

        if pr_future is not None:
            snapshot.pull_requests, error = pr_future.result()
            if error:
                snapshot.errors.append(error)
        if issue_future is not None:
            snapshot.issues, error = issue_future.result()
            if error:
                snapshot.errors.append(error)
        if event_future is not None:
            snapshot.events, error = event_future.result()
            if error:
                snapshot.errors.append(error)

    logger.info(
        f"Fetched {len(snapshot.pull_requests)} pull requests, {len(snapshot.issues)} issues, "
        f"{len(snapshot.events)} events ({len(snapshot.errors)} source errors)"
    )
    return snapshot
