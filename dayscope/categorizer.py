# DayScope
# Copyright (C) 2026 StrateCode
# Licensed under the GNU Affero General Public License v3 (AGPLv3)

"""Category assignment for work items."""

import logging
from dataclasses import replace
from typing import List

from dayscope.models import (
    Category,
    RANK_HIGH,
    RANK_LOW,
    RANK_MEDIUM,
    RANK_URGENT,
    WorkItem,
)

# Set up logging
logger = logging.getLogger(__name__)


class Categorizer:
    """
    Assigns each work item to one of the fixed planning categories.

    Urgent linked work and pull request actions always outrank backlog issues
    regardless of their nominal priority label.
    """

    BAND_URGENT = 1
    BAND_PULL_REQUEST = 2
    BAND_IN_PROGRESS = 3

    IN_PROGRESS_BY_RANK = {
        RANK_URGENT: Category.IN_PROGRESS_HIGH,
        RANK_HIGH: Category.IN_PROGRESS_HIGH,
        RANK_MEDIUM: Category.IN_PROGRESS_MEDIUM,
        RANK_LOW: Category.IN_PROGRESS_LOW,
    }

    TODO_BY_RANK = {
        RANK_URGENT: Category.TODO_HIGH,
        RANK_HIGH: Category.TODO_HIGH,
        RANK_MEDIUM: Category.TODO_MEDIUM,
        RANK_LOW: Category.TODO_LOW,
    }

    def category(self, item: WorkItem) -> Category:
        """
        Compute the category of a single item.

        Args:
            item: Normalized work item

        Returns:
            Category (never None; unknown data maps to a "no priority" variant)
        """
        band = item.legacy_sort_priority // 100
        rank = item.source_priority_rank

        if band == self.BAND_URGENT:
            return Category.URGENT
        if band == self.BAND_PULL_REQUEST:
            return Category.PULL_REQUEST_ACTION
        if band == self.BAND_IN_PROGRESS:
            return self.IN_PROGRESS_BY_RANK.get(rank, Category.IN_PROGRESS_NONE)
        return self.TODO_BY_RANK.get(rank, Category.TODO_NONE)

    def categorize(self, items: List[WorkItem]) -> List[WorkItem]:
        """
        Return copies of the items with their category assigned.

        Args:
            items: Normalized work items

        Returns:
            New list of categorized WorkItems in input order
        """
        categorized = []
        for item in items:
            category = self.category(item)
            logger.debug(f"Item {item.id} (sort {item.legacy_sort_priority}) -> {category.value}")
            categorized.append(replace(item, category=category))
        return categorized
