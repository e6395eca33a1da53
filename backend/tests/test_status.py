"""
Unit tests for lifecycle statuses and transition tables.
"""

import pytest

from freightbid.models import OrderStatus, QuoteStatus
from freightbid.models.enums import ORDER_TRANSITIONS, QUOTE_TRANSITIONS
from freightbid.models.status import Flags, LifecycleStatusEnum, Status, TransitionTable


class DraftStatus(LifecycleStatusEnum):
    DRAFT = Status("draft", Flags.INITIAL | Flags.OPEN)
    PUBLISHED = Status("published", Flags.OPEN)
    ARCHIVED = Status("archived", Flags.FINAL)


class TestStatusFlags:
    """Tests for status metadata."""

    def test_order_status_metadata(self):
        assert OrderStatus.initial_state() == OrderStatus.ACTIVE
        assert OrderStatus.open_states() == frozenset({OrderStatus.ACTIVE})
        assert OrderStatus.final_states() == frozenset({OrderStatus.CLOSED, OrderStatus.CANCELLED})

    def test_quote_status_metadata(self):
        assert QuoteStatus.initial_state() == QuoteStatus.ACTIVE
        assert QuoteStatus.final_states() == frozenset({QuoteStatus.SELECTED, QuoteStatus.EXPIRED})

    def test_status_values_are_strings(self):
        assert OrderStatus.CLOSED == "closed"
        assert QuoteStatus("expired") is QuoteStatus.EXPIRED

    def test_final_and_open_is_rejected(self):
        with pytest.raises(ValueError, match="cannot be present"):
            Status("broken", Flags.FINAL | Flags.OPEN)

    def test_initial_requires_open(self):
        with pytest.raises(ValueError, match="must be present"):
            Status("broken", Flags.INITIAL)


class TestTransitionTable:
    """Tests for the exhaustive transition tables."""

    def test_order_edges(self):
        assert ORDER_TRANSITIONS.allowed(OrderStatus.ACTIVE, OrderStatus.CLOSED)
        assert ORDER_TRANSITIONS.allowed(OrderStatus.ACTIVE, OrderStatus.CANCELLED)
        assert not ORDER_TRANSITIONS.allowed(OrderStatus.CANCELLED, OrderStatus.CLOSED)
        assert not ORDER_TRANSITIONS.allowed(OrderStatus.CLOSED, OrderStatus.CLOSED)

    def test_quote_edges(self):
        assert QUOTE_TRANSITIONS.sources_of(QuoteStatus.EXPIRED) == frozenset({QuoteStatus.ACTIVE})
        assert not QUOTE_TRANSITIONS.allowed(QuoteStatus.SELECTED, QuoteStatus.EXPIRED)

    def test_missing_source_is_rejected(self):
        with pytest.raises(ValueError, match="missing sources: archived"):
            TransitionTable(
                DraftStatus,
                {
                    DraftStatus.DRAFT: {DraftStatus.PUBLISHED},
                    DraftStatus.PUBLISHED: {DraftStatus.ARCHIVED},
                },
            )

    def test_edge_out_of_final_is_rejected(self):
        with pytest.raises(ValueError, match="final state archived"):
            TransitionTable(
                DraftStatus,
                {
                    DraftStatus.DRAFT: {DraftStatus.PUBLISHED},
                    DraftStatus.PUBLISHED: {DraftStatus.ARCHIVED},
                    DraftStatus.ARCHIVED: {DraftStatus.PUBLISHED},
                },
            )

    def test_edge_back_to_initial_is_rejected(self):
        with pytest.raises(ValueError, match="back to draft"):
            TransitionTable(
                DraftStatus,
                {
                    DraftStatus.DRAFT: {DraftStatus.PUBLISHED},
                    DraftStatus.PUBLISHED: {DraftStatus.DRAFT},
                    DraftStatus.ARCHIVED: set(),
                },
            )
