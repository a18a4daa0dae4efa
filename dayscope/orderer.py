# DayScope
# Copyright (C) 2026 StrateCode
# Licensed under the GNU Affero General Public License v3 (AGPLv3)

"""Ordering of categorized work items into a single planning sequence."""

import logging
from typing import Dict, List, Optional

from dayscope.models import ItemOrderPreference, WorkItem

# Set up logging
logger = logging.getLogger(__name__)


class Orderer:
    """
    Produces one total order spanning all categories.

    Ranking criteria (in order):
    1. Category position (fixed, never reconfigured)
    2. Pinned items first within the category
    3. Items in the category's custom order list, by list position
    4. Remaining items by legacy sort priority (stable for ties)
    """

    def order(self, items: List[WorkItem],
              preference: Optional[ItemOrderPreference] = None) -> List[WorkItem]:
        """
        Order items for scoping.

        Args:
            items: Categorized work items
            preference: Optional per-category custom order

        Returns:
            New list with the total planning order
        """
        preference = preference or ItemOrderPreference()
        positions = self._list_positions(items, preference)

        def sort_key(indexed):
            index, item = indexed
            list_position = positions.get(index)
            listed = list_position is not None
            return (
                item.category.index,
                0 if item.is_pinned else 1,
                0 if listed else 1,
                list_position if listed else 0,
                item.legacy_sort_priority,
                index,
            )

        ordered = [item for _, item in sorted(enumerate(items), key=sort_key)]
        logger.debug(f"Ordered {len(ordered)} items: {[item.id for item in ordered]}")
        return ordered

    def move(self, items: List[WorkItem], preference: Optional[ItemOrderPreference],
             item_id: str, before_id: Optional[str] = None) -> ItemOrderPreference:
        """
        Move an item within its category and return the updated preference.

        The category's custom list is rebuilt from the current order so that
        the move is stable across regenerations. Moves across categories are
        not allowed and leave the preference unchanged.

        Args:
            items: Categorized work items
            preference: Current custom order
            item_id: Item to move
            before_id: Item to place it before; None moves it to the end

        Returns:
            New ItemOrderPreference
        """
        preference = preference or ItemOrderPreference()
        orders = {category: list(ids) for category, ids in preference.orders.items()}

        moving = _find(items, item_id)
        if moving is None:
            logger.warning(f"Cannot move unknown item {item_id}")
            return ItemOrderPreference(orders=orders)

        target = None
        if before_id is not None:
            target = _find(items, before_id)
            if target is None:
                logger.warning(f"Cannot move {item_id} before unknown item {before_id}")
                return ItemOrderPreference(orders=orders)
            if target.category != moving.category:
                logger.info(
                    f"Ignoring move of {moving.id} ({moving.category.value}) "
                    f"across categories to {target.category.value}"
                )
                return ItemOrderPreference(orders=orders)
            if target.id == moving.id:
                return ItemOrderPreference(orders=orders)

        in_category = [
            item for item in self.order(items, preference)
            if item.category == moving.category
        ]
        ids = [item.id for item in in_category if item.id != moving.id]
        position = ids.index(target.id) if target is not None else len(ids)
        ids.insert(position, moving.id)

        orders[moving.category] = ids
        logger.debug(f"Moved {moving.id} to position {position} in {moving.category.value}")
        return ItemOrderPreference(orders=orders)

    def _list_positions(self, items: List[WorkItem],
                        preference: ItemOrderPreference) -> Dict[int, int]:
        # Map item index -> position within its own category's list
        positions: Dict[int, int] = {}
        for index, item in enumerate(items):
            custom_order = preference.order_for(item.category)
            if not custom_order:
                continue
            for key in item.keys():
                if key in custom_order:
                    positions[index] = custom_order.index(key)
                    break
        return positions


def _find(items: List[WorkItem], key: str) -> Optional[WorkItem]:
    for item in items:
        if key in item.keys():
            return item
    return None
