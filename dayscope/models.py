# DayScope
# Copyright (C) 2026 StrateCode
# Licensed under the GNU Affero General Public License v3 (AGPLv3)

"""Core data models for the DayScope planning engine."""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple

# Set up logging
logger = logging.getLogger(__name__)


# Allowed oracle estimates in hours
ALLOWED_EFFORT_HOURS = (0.5, 1.0, 2.0, 4.0, 8.0)

# Source priority ranks (0 = most urgent)
RANK_URGENT = 0
RANK_HIGH = 1
RANK_MEDIUM = 2
RANK_LOW = 3
RANK_NONE = 4


class ItemKind(Enum):
    """Origin of a work item."""
    ISSUE_ONLY = "issue"
    PULL_REQUEST_ONLY = "pr"
    PULL_REQUEST_WITH_LINKED_ISSUE = "pr_with_issue"


class WorkflowState(Enum):
    """Mutually exclusive workflow classification used for filtering."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    BLOCKED = "blocked"
    STALE = "stale"
    DRAFT = "draft"


class Category(Enum):
    """Planning category. Declaration order is the planning order."""
    URGENT = "urgent"
    PULL_REQUEST_ACTION = "pull_request_action"
    IN_PROGRESS_HIGH = "in_progress_high"
    IN_PROGRESS_MEDIUM = "in_progress_medium"
    IN_PROGRESS_LOW = "in_progress_low"
    IN_PROGRESS_NONE = "in_progress_none"
    TODO_HIGH = "todo_high"
    TODO_MEDIUM = "todo_medium"
    TODO_LOW = "todo_low"
    TODO_NONE = "todo_none"

    @property
    def index(self) -> int:
        """Fixed position of the category in the planning order."""
        return _CATEGORY_ORDER.index(self)

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]


_CATEGORY_ORDER = list(Category)

_CATEGORY_LABELS = {
    Category.URGENT: "Urgent",
    Category.PULL_REQUEST_ACTION: "Pull Requests",
    Category.IN_PROGRESS_HIGH: "In Progress - High",
    Category.IN_PROGRESS_MEDIUM: "In Progress - Medium",
    Category.IN_PROGRESS_LOW: "In Progress - Low",
    Category.IN_PROGRESS_NONE: "In Progress - No Priority",
    Category.TODO_HIGH: "Todo - High",
    Category.TODO_MEDIUM: "Todo - Medium",
    Category.TODO_LOW: "Todo - Low",
    Category.TODO_NONE: "Todo - No Priority",
}


@dataclass
class Repository:
    """A GitHub repository reference."""
    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass
class ReviewComment:
    """A reviewer comment left on a pull request."""
    body: str
    author: str
    created_at: str = ""


@dataclass
class PullRequestRecord:
    """Raw pull request data from the code host."""
    id: int  # Native numeric id
    number: int
    title: str
    url: str
    created_at: str = ""  # ISO 8601 timestamp
    draft: bool = False
    author: str = ""
    body: str = ""
    additions: Optional[int] = None
    deletions: Optional[int] = None
    changed_files: Optional[int] = None
    commits: Optional[int] = None
    comments: Optional[int] = None
    review_comments: Optional[int] = None
    labels: List[str] = field(default_factory=list)
    repository: Optional[Repository] = None
    action_reason: Optional[str] = None  # e.g., "review_ready", "fix_needed"
    action_label: str = ""  # e.g., "Review Needed"
    review_comment_excerpts: List[ReviewComment] = field(default_factory=list)


@dataclass
class IssueComment:
    """A comment on a tracker issue."""
    body: str
    created_at: str = ""


@dataclass
class IssueRecord:
    """Raw issue data from the issue tracker."""
    id: str  # Native UUID
    identifier: str  # e.g., "ENG-123"
    title: str
    url: str = ""
    description: str = ""
    priority: int = 0  # 0 = none, 1 = urgent, 2 = high, 3 = medium, 4 = low
    priority_label: str = "No priority"
    estimate: Optional[float] = None  # Story points
    state_name: str = ""  # e.g., "In Progress"
    state_type: str = ""  # "triage", "backlog", "unstarted", "started", "completed", "canceled"
    attachment_urls: List[str] = field(default_factory=list)
    comments: List[IssueComment] = field(default_factory=list)
    inverse_relation_types: List[str] = field(default_factory=list)  # e.g., "blocks"
    created_at: str = ""
    updated_at: str = ""


@dataclass
class CalendarEvent:
    """A calendar event used as planning input."""
    id: str
    summary: str
    start: str
    end: str
    duration_minutes: int = 0
    is_all_day: bool = False
    response_status: Optional[str] = None  # "accepted", "declined", "tentative", "needsAction"


@dataclass
class EffortEstimate:
    """Hours plus a short justification returned by an estimator."""
    hours: float
    reasoning: str


@dataclass
class WorkItem:
    """A unit of actionable work fed into planning."""
    id: str
    kind: ItemKind
    title: str
    source_priority_rank: int = RANK_NONE
    workflow_state: WorkflowState = WorkflowState.NOT_STARTED
    legacy_sort_priority: int = 400 + RANK_NONE
    category: Category = Category.TODO_NONE
    effort_hours: Optional[float] = None
    effort_reasoning: str = ""
    is_overflow: bool = False
    is_pinned: bool = False
    url: str = ""
    pull_request: Optional[PullRequestRecord] = None
    issue: Optional[IssueRecord] = None
    source_ids: Tuple[str, ...] = ()

    @property
    def has_issue(self) -> bool:
        return self.kind in (ItemKind.ISSUE_ONLY, ItemKind.PULL_REQUEST_WITH_LINKED_ISSUE)

    @property
    def has_pull_request(self) -> bool:
        return self.kind in (ItemKind.PULL_REQUEST_ONLY, ItemKind.PULL_REQUEST_WITH_LINKED_ISSUE)

    def keys(self) -> Tuple[str, ...]:
        """All identifiers a caller may use to refer to this item."""
        return (self.id,) + tuple(k for k in self.source_ids if k != self.id)


@dataclass
class ItemOrderPreference:
    """Caller-supplied custom order of item ids within each category."""
    orders: Dict[Category, List[str]] = field(default_factory=dict)

    def order_for(self, category: Category) -> List[str]:
        return self.orders.get(category, [])

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, List[str]]]) -> "ItemOrderPreference":
        """
        Build a preference from a plain mapping keyed by category value.

        Unknown category keys and entries that are not lists are ignored.

        Args:
            data: Mapping such as {"todo_high": ["ENG-1", "ENG-7"]}

        Returns:
            ItemOrderPreference
        """
        orders: Dict[Category, List[str]] = {}
        if not isinstance(data, dict):
            if data:
                logger.warning(f"Ignoring custom order that is not a mapping: {data!r}")
            return cls(orders=orders)
        for key, ids in data.items():
            try:
                category = key if isinstance(key, Category) else Category(key)
            except ValueError:
                continue
            if not isinstance(ids, (list, tuple)):
                logger.warning(f"Ignoring invalid custom order for {category.value}: {ids!r}")
                continue
            orders[category] = [str(item_id) for item_id in ids]
        return cls(orders=orders)

    def to_dict(self) -> Dict[str, List[str]]:
        return {category.value: list(ids) for category, ids in self.orders.items() if ids}


@dataclass
class ScopeResult:
    """Output of the budget scoper."""
    items: List[WorkItem]
    total_hours: float
    overflow_index: Optional[int] = None


@dataclass
class DailyPlan:
    """A time-boxed daily work plan."""
    date: date
    items: List[WorkItem]  # Scoped items in planning order
    total_hours: float  # Committed task hours
    max_hours: float  # Nominal budget requested by the caller
    available_hours: float  # Budget after meetings, used for scoping
    overflow_index: Optional[int] = None
    events: List[CalendarEvent] = field(default_factory=list)
    total_meeting_hours: float = 0.0
    deferred_items: List[WorkItem] = field(default_factory=list)  # Did not fit today
    errors: List[str] = field(default_factory=list)  # Diagnostics for display

    @property
    def is_over_budget(self) -> bool:
        return self.total_hours > self.available_hours

    @property
    def overflow_item(self) -> Optional[WorkItem]:
        if self.overflow_index is None:
            return None
        return self.items[self.overflow_index]

    def to_markdown(self) -> str:
        """Format plan as structured markdown.

        Returns:
            Structured markdown representation of the daily plan
        """
        lines = []

        lines.append(f"# Daily Plan - {self.date.strftime('%Y-%m-%d')}")
        lines.append("")

        # Budget summary
        lines.append("## Budget")
        lines.append(f"- Tasks: {_format_hours(self.total_hours)}")
        lines.append(f"- Meetings: {_format_hours(self.total_meeting_hours)}")
        lines.append(
            f"- Available: {_format_hours(self.available_hours)} "
            f"of {_format_hours(self.max_hours)} requested"
        )
        if self.is_over_budget:
            over = self.total_hours - self.available_hours
            lines.append(f"- Over budget by {_format_hours(over)}")
        lines.append("")

        if self.errors:
            lines.append("## Warnings")
            for error in self.errors:
                lines.append(f"- {error}")
            lines.append("")

        lines.append("## Today's Work")
        lines.append("")

        if not self.items:
            lines.append("No actionable items for today.")
            lines.append("")
        else:
            current_category = None
            for i, item in enumerate(self.items, 1):
                if item.category != current_category:
                    current_category = item.category
                    lines.append(f"### {current_category.label}")
                    lines.append("")
                marker = " (over budget)" if item.is_overflow else ""
                pin = " [pinned]" if item.is_pinned else ""
                lines.append(f"{i}. **[{item.id}] {item.title}**{pin}{marker}")
                if item.effort_hours is not None:
                    lines.append(f"   - Effort: {_format_hours(item.effort_hours)} ({item.effort_reasoning})")
                if item.pull_request and item.pull_request.action_label:
                    lines.append(f"   - Action: {item.pull_request.action_label}")
                if item.url:
                    lines.append(f"   - Link: {item.url}")
                lines.append("")

        if self.events:
            lines.append("## Meetings")
            lines.append("")
            for event in self.events:
                lines.append(f"- {event.summary} ({event.duration_minutes} min)")
            lines.append("")

        if self.deferred_items:
            lines.append("## Deferred (For Reference)")
            lines.append("")
            for item in self.deferred_items:
                lines.append(f"- [{item.id}] {item.title}")
            lines.append("")

        return "\n".join(lines)


def _format_hours(hours: float) -> str:
    return f"{hours:g}h"
