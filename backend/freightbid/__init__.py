"""Freight bidding core: order identifiers, order/quote lifecycle and quote selection."""
