# DayScope
# Copyright (C) 2026 StrateCode
# Licensed under the GNU Affero General Public License v3 (AGPLv3)

"""Effort estimation: task descriptors, heuristic fallback and override resolution."""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from dayscope.models import (
    ALLOWED_EFFORT_HOURS,
    EffortEstimate,
    ItemKind,
    WorkItem,
)

# Set up logging
logger = logging.getLogger(__name__)


# Truncation limits for estimator context
MAX_DESCRIPTION_CHARS = 500
MAX_COMMENT_CHARS = 200
MAX_REVIEW_COMMENT_CHARS = 300
MAX_RECENT_COMMENTS = 3
MAX_REVIEW_COMMENTS = 10


@dataclass
class TaskDescriptor:
    """Context sent to an effort estimator for one work item."""
    id: str
    kind: ItemKind
    title: str
    description: Optional[str] = None
    repo: Optional[str] = None
    pr_number: Optional[int] = None
    pr_body: Optional[str] = None
    pr_additions: Optional[int] = None
    pr_deletions: Optional[int] = None
    pr_changed_files: Optional[int] = None
    pr_commits: Optional[int] = None
    pr_comments: Optional[int] = None
    pr_review_comments: Optional[int] = None
    review_comments: List[Tuple[str, str]] = field(default_factory=list)  # (author, body)
    issue_identifier: Optional[str] = None
    priority_label: Optional[str] = None
    state_name: Optional[str] = None
    story_points: Optional[float] = None
    recent_comments: Optional[str] = None
    reason: Optional[str] = None

    @property
    def is_pull_request(self) -> bool:
        return self.kind in (ItemKind.PULL_REQUEST_ONLY, ItemKind.PULL_REQUEST_WITH_LINKED_ISSUE)


def truncate(text: Optional[str], limit: int) -> Optional[str]:
    """Truncate text to a character limit, marking the cut with '...'."""
    if text and len(text) > limit:
        return text[:limit] + "..."
    return text


def build_descriptor(item: WorkItem) -> TaskDescriptor:
    """
    Build the estimator context for a work item.

    Long text fields are truncated to keep the batched request bounded.

    Args:
        item: Work item

    Returns:
        TaskDescriptor
    """
    descriptor = TaskDescriptor(id=item.id, kind=item.kind, title=item.title)

    pr = item.pull_request
    if pr is not None:
        descriptor.repo = pr.repository.full_name if pr.repository else None
        descriptor.pr_number = pr.number
        descriptor.pr_body = truncate(pr.body or None, MAX_DESCRIPTION_CHARS)
        descriptor.pr_additions = pr.additions
        descriptor.pr_deletions = pr.deletions
        descriptor.pr_changed_files = pr.changed_files
        descriptor.pr_commits = pr.commits
        descriptor.pr_comments = pr.comments
        descriptor.pr_review_comments = pr.review_comments
        descriptor.review_comments = [
            (c.author, truncate(c.body, MAX_REVIEW_COMMENT_CHARS) or "")
            for c in pr.review_comment_excerpts[:MAX_REVIEW_COMMENTS]
        ]
        descriptor.reason = pr.action_label or None

    issue = item.issue
    if issue is not None:
        descriptor.description = truncate(issue.description or None, MAX_DESCRIPTION_CHARS)
        descriptor.issue_identifier = issue.identifier
        descriptor.priority_label = issue.priority_label
        descriptor.state_name = issue.state_name
        descriptor.story_points = issue.estimate
        recent = [
            truncate(c.body, MAX_COMMENT_CHARS) or ""
            for c in issue.comments[:MAX_RECENT_COMMENTS]
        ]
        descriptor.recent_comments = " | ".join(recent) if recent else None

    return descriptor


def snap_hours(hours: float) -> float:
    """
    Snap an hour value onto the allowed estimate scale.

    Returns the smallest allowed value >= hours, capped at the largest.
    """
    for allowed in ALLOWED_EFFORT_HOURS:
        if hours <= allowed:
            return allowed
    return ALLOWED_EFFORT_HOURS[-1]


def parse_override(value: Any) -> Optional[float]:
    """
    Parse a manual hour override.

    Args:
        value: Raw override from the caller (number or numeric string)

    Returns:
        Positive finite float, or None when the value is not a usable override
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        hours = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Ignoring non-numeric hour override: {value!r}")
        return None
    if math.isnan(hours) or math.isinf(hours) or hours <= 0:
        logger.debug(f"Ignoring non-positive hour override: {value!r}")
        return None
    return hours


class HeuristicEstimator:
    """
    Deterministic rule-based estimator used when the oracle is unavailable.
    """

    # Story points to hours (1pt=0.5h, 2pt=1h, 3pt=2h, 5pt=4h, 8pt=8h)
    STORY_POINT_HOURS = [(1, 0.5), (2, 1.0), (3, 2.0), (5, 4.0), (8, 8.0)]

    PRIORITY_HOURS = {
        "urgent": (4.0, "Urgent priority task"),
        "high": (2.0, "High priority task"),
        "medium": (1.0, "Medium priority task"),
    }

    def estimate(self, descriptors: List[TaskDescriptor]) -> Dict[str, EffortEstimate]:
        """
        Estimate every descriptor.

        Args:
            descriptors: Task descriptors

        Returns:
            Mapping of descriptor id to EffortEstimate
        """
        return {d.id: self.estimate_one(d) for d in descriptors}

    def estimate_one(self, descriptor: TaskDescriptor) -> EffortEstimate:
        if descriptor.is_pull_request:
            return self._estimate_pull_request(descriptor)
        return self._estimate_issue(descriptor)

    def _estimate_pull_request(self, d: TaskDescriptor) -> EffortEstimate:
        total_lines = (d.pr_additions or 0) + (d.pr_deletions or 0)
        files = d.pr_changed_files or 0

        hours = 1.0
        reasoning = "Standard PR review"

        if total_lines > 0 or files > 0:
            if total_lines < 100 and files <= 3:
                hours, size = 0.5, "Tiny"
            elif total_lines < 400 and files <= 8:
                hours, size = 0.5, "Small"
            elif total_lines < 1000 and files <= 15:
                hours, size = 0.5, "Medium"
            elif total_lines < 2000 and files <= 30:
                hours, size = 1.0, "Large"
            else:
                hours, size = 2.0, "Very large"
            reasoning = f"{size} PR: {total_lines} lines, {files} files"

        reason = d.reason or ""
        if "Has Review Comments" in reason:
            return EffortEstimate(hours=0.5, reasoning="Addressing review feedback")
        if "Changes" in reason or "Fix" in reason:
            hours = min(hours + 0.5, 4.0)
            reasoning = f"Changes requested - {reasoning}"

        return EffortEstimate(hours=snap_hours(hours), reasoning=reasoning)

    def _estimate_issue(self, d: TaskDescriptor) -> EffortEstimate:
        if d.story_points is not None and d.story_points > 0:
            hours = self._hours_for_points(d.story_points)
            return EffortEstimate(hours=hours, reasoning=f"{d.story_points:g} story points")

        label = (d.priority_label or "").lower()
        if label in self.PRIORITY_HOURS:
            hours, reasoning = self.PRIORITY_HOURS[label]
            return EffortEstimate(hours=hours, reasoning=reasoning)
        return EffortEstimate(hours=0.5, reasoning="Low priority quick task")

    def _hours_for_points(self, points: float) -> float:
        for max_points, hours in self.STORY_POINT_HOURS:
            if points <= max_points:
                return hours
        return self.STORY_POINT_HOURS[-1][1]


class EffortResolver:
    """
    Merges estimator hours with manual hour overrides.
    """

    def resolve(self, item: WorkItem, estimate: EffortEstimate,
                override: Any = None) -> Tuple[float, str]:
        """
        Resolve the final effort of an item.

        Args:
            item: Work item being resolved
            estimate: Estimator result for the item
            override: Optional manual hours; invalid values are ignored

        Returns:
            Tuple of (final_hours, final_reasoning)
        """
        hours = parse_override(override)
        if hours is not None:
            logger.debug(f"Item {item.id} uses custom estimate {hours:g}h")
            return hours, f"Custom estimate: {hours:g}h"
        return estimate.hours, estimate.reasoning

    def find_override(self, item: WorkItem, custom_hours: Optional[Dict[str, Any]]) -> Any:
        """
        Look up an override by item id, then by native source ids.

        The first key holding a valid override wins.
        """
        if not custom_hours:
            return None
        for key in item.keys():
            if key in custom_hours and parse_override(custom_hours[key]) is not None:
                return custom_hours[key]
        return None
