# DayScope
# Copyright (C) 2026 StrateCode
# Licensed under the GNU Affero General Public License v3 (AGPLv3)

"""Plan generation: the planning entry point and plan assembly."""

import logging
from dataclasses import replace
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple, Union

from dayscope.categorizer import Categorizer
from dayscope.effort import (
    EffortResolver,
    HeuristicEstimator,
    TaskDescriptor,
    build_descriptor,
    parse_override,
)
from dayscope.models import (
    CalendarEvent,
    DailyPlan,
    EffortEstimate,
    IssueRecord,
    ItemOrderPreference,
    PullRequestRecord,
    WorkflowState,
    WorkItem,
)
from dayscope.normalizer import ItemNormalizer
from dayscope.orderer import Orderer
from dayscope.scoper import BudgetScoper

# Set up logging
logger = logging.getLogger(__name__)


class EffortEstimator(Protocol):
    """Anything that maps a batch of task descriptors to estimates."""

    def estimate(self, descriptors: List[TaskDescriptor]) -> Dict[str, EffortEstimate]:
        ...


class PlanGenerator:
    """
    Generates time-boxed daily plans from actionable work items.
    """

    # Budget used when the caller supplies none or an invalid one
    DEFAULT_MAX_HOURS = 6.0

    # Floor for the budget left after meetings
    MIN_AVAILABLE_HOURS = 0.5

    def __init__(self, estimator: Optional[EffortEstimator] = None):
        """
        Initialize plan generator.

        Args:
            estimator: Effort oracle, called at most once per plan. The
                deterministic heuristic is used when None or when it fails.
        """
        self.estimator = estimator
        self.heuristic = HeuristicEstimator()
        self.normalizer = ItemNormalizer()
        self.categorizer = Categorizer()
        self.orderer = Orderer()
        self.resolver = EffortResolver()
        self.scoper = BudgetScoper()

    def build_items(self, pull_requests: List[PullRequestRecord],
                    issues: List[IssueRecord]) -> List[WorkItem]:
        """
        Normalize and categorize raw source records.

        Args:
            pull_requests: Actionable pull request records
            issues: Issue tracker records

        Returns:
            Categorized WorkItems (stale items included for display)
        """
        items = self.normalizer.normalize(pull_requests, issues)
        return self.categorizer.categorize(items)

    def generate_plan(
        self,
        items: List[WorkItem],
        max_hours: Any = DEFAULT_MAX_HOURS,
        custom_hours: Optional[Dict[str, Any]] = None,
        custom_order: Optional[Union[ItemOrderPreference, Dict[str, List[str]]]] = None,
        prioritized_ids: Optional[Iterable[str]] = None,
        excluded_ids: Optional[Iterable[str]] = None,
        events: Optional[List[CalendarEvent]] = None,
        plan_date: Optional[date] = None,
    ) -> DailyPlan:
        """
        Generate a daily plan.

        This method never raises. Collaborator failures degrade to heuristic
        estimates and are reported in DailyPlan.errors.

        Args:
            items: Candidate work items
            max_hours: Requested time budget in hours
            custom_hours: Manual hour overrides keyed by item id
            custom_order: Per-category custom order of item ids
            prioritized_ids: Ids of pinned items
            excluded_ids: Ids of items to leave out of planning
            events: Calendar events selected by the caller
            plan_date: Plan date (default: today)

        Returns:
            DailyPlan
        """
        plan_date = plan_date or date.today()
        requested_hours = self._requested_hours(max_hours)
        events = list(events or [])

        total_meeting_hours = sum(event.duration_minutes for event in events) / 60
        available_hours = max(self.MIN_AVAILABLE_HOURS, requested_hours - total_meeting_hours)

        try:
            return self._generate(
                items, requested_hours, available_hours, total_meeting_hours,
                custom_hours, custom_order, prioritized_ids, excluded_ids, events, plan_date,
            )
        except Exception as e:
            logger.exception(f"Plan generation failed: {e}")
            return DailyPlan(
                date=plan_date,
                items=[],
                total_hours=0.0,
                max_hours=requested_hours,
                available_hours=available_hours,
                events=events,
                total_meeting_hours=total_meeting_hours,
                errors=[f"Failed to generate daily plan: {e}"],
            )

    def _generate(self, items, requested_hours, available_hours, total_meeting_hours,
                  custom_hours, custom_order, prioritized_ids, excluded_ids, events,
                  plan_date) -> DailyPlan:
        logger.info(f"Generating daily plan for {plan_date} from {len(items)} candidate items")
        logger.info(
            f"Budget: {requested_hours:g}h requested, {total_meeting_hours:g}h meetings, "
            f"{available_hours:g}h available"
        )

        pool = self.planning_pool(items, prioritized_ids, excluded_ids)
        logger.info(f"Planning pool has {len(pool)} items")

        errors: List[str] = []
        if not pool:
            return DailyPlan(
                date=plan_date,
                items=[],
                total_hours=0.0,
                max_hours=requested_hours,
                available_hours=available_hours,
                events=events,
                total_meeting_hours=total_meeting_hours,
                errors=errors,
            )

        # Attach effort, then order and scope
        estimates, estimation_error = self._estimate(pool)
        if estimation_error:
            errors.append(estimation_error)

        resolved = []
        for item in pool:
            estimate = estimates[item.id]
            override = self.resolver.find_override(item, custom_hours)
            hours, reasoning = self.resolver.resolve(item, estimate, override)
            resolved.append(replace(item, effort_hours=hours, effort_reasoning=reasoning))

        if isinstance(custom_order, ItemOrderPreference):
            preference = custom_order
        else:
            preference = ItemOrderPreference.from_dict(custom_order)

        ordered = self.orderer.order(resolved, preference)
        result = self.scoper.scope(ordered, available_hours)

        plan = DailyPlan(
            date=plan_date,
            items=result.items,
            total_hours=result.total_hours,
            max_hours=requested_hours,
            available_hours=available_hours,
            overflow_index=result.overflow_index,
            events=events,
            total_meeting_hours=total_meeting_hours,
            deferred_items=ordered[len(result.items):],
            errors=errors,
        )

        logger.info(
            f"Daily plan generated: {len(plan.items)} items, {plan.total_hours:g}h "
            f"({len(plan.deferred_items)} deferred)"
        )
        return plan

    def _requested_hours(self, max_hours: Any) -> float:
        hours = parse_override(max_hours)
        if hours is None:
            logger.warning(f"Invalid time budget {max_hours!r}, using {self.DEFAULT_MAX_HOURS:g}h")
            return self.DEFAULT_MAX_HOURS
        return hours

    def planning_pool(self, items: List[WorkItem], prioritized_ids: Optional[Iterable[str]] = None,
                      excluded_ids: Optional[Iterable[str]] = None) -> List[WorkItem]:
        """
        Select and prepare the items that take part in planning.

        Stale and excluded items are left out, duplicate ids keep their first
        occurrence, categories are (re)computed and pin flags applied.
        """
        pinned = set(prioritized_ids or [])
        excluded = set(excluded_ids or [])

        pool = []
        seen_ids = set()
        for item in items:
            keys = set(item.keys())
            if item.id in seen_ids:
                logger.warning(f"Duplicate work item id {item.id}, keeping first occurrence")
                continue
            seen_ids.add(item.id)
            if item.workflow_state == WorkflowState.STALE:
                logger.debug(f"Skipping stale item {item.id}")
                continue
            if keys & excluded:
                logger.debug(f"Skipping excluded item {item.id}")
                continue
            pool.append(replace(
                item,
                category=self.categorizer.category(item),
                is_pinned=item.is_pinned or bool(keys & pinned),
                is_overflow=False,
            ))
        return pool

    def _estimate(self, items: List[WorkItem]) -> Tuple[Dict[str, EffortEstimate], Optional[str]]:
        """
        Estimate effort for the items that do not carry a usable one yet.

        The oracle is called once for the whole batch; on failure every item
        falls back to the heuristic, and ids it did not answer fall back
        individually.

        Returns:
            Tuple of (estimates by item id, diagnostic error or None)
        """
        estimates: Dict[str, EffortEstimate] = {}
        pending: List[TaskDescriptor] = []
        for item in items:
            provided = parse_override(item.effort_hours)
            if provided is not None:
                estimates[item.id] = EffortEstimate(
                    hours=provided,
                    reasoning=item.effort_reasoning or "Provided estimate",
                )
            else:
                pending.append(build_descriptor(item))

        if not pending:
            return estimates, None

        error = None
        oracle_estimates: Dict[str, EffortEstimate] = {}
        if self.estimator is not None:
            try:
                oracle_estimates = self.estimator.estimate(pending) or {}
                logger.info(f"Estimator answered {len(oracle_estimates)} of {len(pending)} items")
            except Exception as e:
                logger.error(f"Effort estimation failed, using heuristic estimates: {e}")
                error = f"Effort estimation unavailable: {e}"
                oracle_estimates = {}
        else:
            logger.info("No effort estimator configured, using heuristic estimates")

        for descriptor in pending:
            estimate = oracle_estimates.get(descriptor.id)
            if estimate is None:
                estimate = self.heuristic.estimate_one(descriptor)
            estimates[descriptor.id] = estimate

        return estimates, error
