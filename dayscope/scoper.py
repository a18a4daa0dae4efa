# DayScope
# Copyright (C) 2026 StrateCode
# Licensed under the GNU Affero General Public License v3 (AGPLv3)

"""Greedy selection of ordered work items against a time budget."""

import logging
from dataclasses import replace
from typing import List

from dayscope.models import ScopeResult, WorkItem

# Set up logging
logger = logging.getLogger(__name__)


class BudgetScoper:
    """
    Selects a prefix of the ordered items that fits the budget.

    Exactly one item may push the total past the budget; it is included and
    marked as overflow, and nothing after it is selected.
    """

    def scope(self, ordered_items: List[WorkItem], max_hours: float) -> ScopeResult:
        """
        Scope ordered items to the budget in a single forward pass.

        Args:
            ordered_items: Items in final planning order with resolved effort
            max_hours: Time budget in hours

        Returns:
            ScopeResult with the selected items, their total hours and the
            index of the overflow item (if any)
        """
        running_total = 0.0
        cutoff = len(ordered_items)
        overflow_index = None

        for i, item in enumerate(ordered_items):
            # The first item is always schedulable
            if i > 0 and running_total >= max_hours:
                cutoff = i
                break

            running_total += item.effort_hours or 0.0

            if running_total > max_hours and overflow_index is None:
                overflow_index = i
                break

        if overflow_index is not None:
            cutoff = overflow_index + 1
            running_total = sum(item.effort_hours or 0.0 for item in ordered_items[:cutoff])

        selected = [replace(item, is_overflow=False) for item in ordered_items[:cutoff]]
        if overflow_index is not None:
            selected[overflow_index] = replace(selected[overflow_index], is_overflow=True)
            logger.info(
                f"Item {selected[overflow_index].id} overflows the {max_hours:g}h budget "
                f"({running_total:g}h committed)"
            )

        logger.info(f"Scoped {len(selected)} of {len(ordered_items)} items, {running_total:g}h total")
        return ScopeResult(items=selected, total_hours=running_total, overflow_index=overflow_index)
