"""Database package with session management, transactions and row locks."""

from freightbid.db.exceptions import is_transient_store_error, store_transaction
from freightbid.db.row_lock import RowLock, snapshot, transition_where

__all__ = [
    "RowLock",
    "is_transient_store_error",
    "snapshot",
    "store_transaction",
    "transition_where",
]
