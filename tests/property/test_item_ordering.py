# DayScope
# Copyright (C) 2026 StrateCode
# Licensed under the GNU Affero General Public License v3 (AGPLv3)

"""Property-based tests for item ordering."""

from hypothesis import given, settings
from hypothesis import strategies as st

from dayscope.models import Category, ItemKind, ItemOrderPreference, WorkItem
from dayscope.orderer import Orderer


@st.composite
def ordered_item_strategy(draw, index=0):
    """Generate a categorized WorkItem."""
    category = draw(st.sampled_from(list(Category)))
    return WorkItem(
        id=f"ENG-{index}",
        kind=ItemKind.ISSUE_ONLY,
        title=f"Task {index}",
        category=category,
        legacy_sort_priority=draw(st.integers(min_value=100, max_value=404)),
        is_pinned=draw(st.booleans()),
    )


@st.composite
def item_list_strategy(draw, max_size=15):
    size = draw(st.integers(min_value=0, max_value=max_size))
    return [draw(ordered_item_strategy(index=i)) for i in range(size)]


@st.composite
def preference_strategy(draw, items):
    """Generate a custom order that lists a random subset of item ids per category."""
    orders = {}
    for category in Category:
        ids = [item.id for item in items if item.category == category]
        if ids:
            orders[category] = draw(st.permutations(ids))[:draw(st.integers(0, len(ids)))]
    return ItemOrderPreference(orders=orders)


# Property 1: Ordering is a permutation
@given(item_list_strategy(), st.data())
@settings(max_examples=50, deadline=3000)
def test_property_1_order_is_permutation(items, data):
    """Property 1: Ordering is a permutation

    Ordering never drops or duplicates items.
    """
    preference = data.draw(preference_strategy(items))

    ordered = Orderer().order(items, preference)

    assert sorted(item.id for item in ordered) == sorted(item.id for item in items)


# Property 2: Pinned items lead their category
@given(item_list_strategy(), st.data())
@settings(max_examples=50, deadline=3000)
def test_property_2_pinned_items_lead_category(items, data):
    """Property 2: Pinned items lead their category

    Within each category, every pinned item precedes every unpinned item,
    whatever the custom order says.
    """
    preference = data.draw(preference_strategy(items))

    ordered = Orderer().order(items, preference)

    for category in Category:
        pins = [item.is_pinned for item in ordered if item.category == category]
        assert pins == sorted(pins, reverse=True)


# Property 3: Custom order is respected
@given(item_list_strategy(), st.data())
@settings(max_examples=50, deadline=3000)
def test_property_3_custom_order_respected(items, data):
    """Property 3: Custom order is respected

    Listed unpinned items appear in list order, before unlisted unpinned
    items of the same category.
    """
    preference = data.draw(preference_strategy(items))

    ordered = Orderer().order(items, preference)

    for category in Category:
        listed = preference.order_for(category)
        unpinned = [item.id for item in ordered if item.category == category and not item.is_pinned]
        expected_listed = [item_id for item_id in listed if item_id in unpinned]
        assert unpinned[:len(expected_listed)] == expected_listed


# Property 4: Move stays inside the category
@given(item_list_strategy(), st.data())
@settings(max_examples=50, deadline=3000)
def test_property_4_move_stays_in_category(items, data):
    """Property 4: Move stays inside the category

    Moving an item only rewrites the custom list of its own category.
    """
    if len(items) < 2:
        return
    moving = data.draw(st.sampled_from(items))
    target = data.draw(st.sampled_from(items))
    original = data.draw(preference_strategy(items))

    updated = Orderer().move(items, original, moving.id, target.id)

    for category in Category:
        if category != moving.category:
            assert updated.order_for(category) == original.order_for(category)
    if target.category != moving.category:
        assert updated.to_dict() == original.to_dict()
