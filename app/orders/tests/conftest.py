"""
Pytest fixtures for order tests.

Usage:
    def test_convert(draft_with_items):
        result = DraftOrderService.complete_draft_order(draft_with_items.id)
        assert result.success
"""

import pytest

from orders.tests.factories import (
    DraftOrderFactory,
    DraftOrderItemFactory,
    OrderFactory,
    StoreFactory,
    UserFactory,
)


@pytest.fixture
def user(db):
    return UserFactory()


@pytest.fixture
def store(db, user):
    return StoreFactory(owner=user)


@pytest.fixture
def order(db, store):
    return OrderFactory(store=store)


@pytest.fixture
def draft(db, store):
    """A draft with no items."""
    return DraftOrderFactory(store=store)


@pytest.fixture
def draft_with_items(db, draft):
    """A draft with two line items (2 x 45.00 and 1 x 10.00)."""
    DraftOrderItemFactory(
        draft=draft,
        quantity=2,
        unit_price="45.00",
        line_subtotal="90.00",
        line_total="90.00",
    )
    DraftOrderItemFactory(
        draft=draft,
        quantity=1,
        unit_price="10.00",
        line_subtotal="10.00",
        line_total="10.00",
    )
    return draft
