# DayScope
# Copyright (C) 2026 StrateCode
# Licensed under the GNU Affero General Public License v3 (AGPLv3)

"""Unit tests for Categorizer."""

import pytest

from dayscope.categorizer import Categorizer
from dayscope.models import Category, ItemKind, WorkItem


def make_item(sort_priority, rank, kind=ItemKind.ISSUE_ONLY):
    return WorkItem(id="ENG-1", kind=kind, title="Task",
                    source_priority_rank=rank, legacy_sort_priority=sort_priority)


class TestCategorizer:
    """Test suite for Categorizer."""

    def test_urgent_band(self):
        assert Categorizer().category(make_item(100, 0)) == Category.URGENT

    def test_pull_request_band(self):
        item = make_item(204, 4, kind=ItemKind.PULL_REQUEST_ONLY)
        assert Categorizer().category(item) == Category.PULL_REQUEST_ACTION

    @pytest.mark.parametrize("rank,expected", [
        (0, Category.IN_PROGRESS_HIGH),
        (1, Category.IN_PROGRESS_HIGH),
        (2, Category.IN_PROGRESS_MEDIUM),
        (3, Category.IN_PROGRESS_LOW),
        (4, Category.IN_PROGRESS_NONE),
    ])
    def test_in_progress_band(self, rank, expected):
        assert Categorizer().category(make_item(300 + rank, rank)) == expected

    @pytest.mark.parametrize("rank,expected", [
        (1, Category.TODO_HIGH),
        (2, Category.TODO_MEDIUM),
        (3, Category.TODO_LOW),
        (4, Category.TODO_NONE),
    ])
    def test_backlog_band(self, rank, expected):
        assert Categorizer().category(make_item(400 + rank, rank)) == expected

    def test_unknown_band_maps_to_todo(self):
        """Unknown bands fall into the todo variants."""
        assert Categorizer().category(make_item(999, 2)) == Category.TODO_MEDIUM
        assert Categorizer().category(make_item(0, 7)) == Category.TODO_NONE

    def test_categorize_returns_copies(self):
        item = make_item(301, 1)

        categorized = Categorizer().categorize([item])

        assert categorized[0].category == Category.IN_PROGRESS_HIGH
        assert item.category == Category.TODO_NONE

    def test_category_order_is_fixed(self):
        assert [c.index for c in Category] == list(range(10))
        assert Category.URGENT.index < Category.PULL_REQUEST_ACTION.index < Category.IN_PROGRESS_HIGH.index
        assert Category.IN_PROGRESS_NONE.index < Category.TODO_HIGH.index
