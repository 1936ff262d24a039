"""
Transaction lifecycle for a single connection: run a unit of work, commit or
roll back depending on its outcome, and always hand the connection back in
auto-commit mode.
"""

from .async_controller import AsyncTransactionController
from .async_router import AsyncTransactionRouter, run_transaction_async
from .controller import TransactionController
from .interfaces import (
    ERROR_NONE,
    Outcome,
    TransactionError,
    TransactionResult,
    TransactionState,
    set_error_code,
)
from .router import TransactionRouter, run_transaction

__all__ = [
    "ERROR_NONE",
    "AsyncTransactionController",
    "AsyncTransactionRouter",
    "Outcome",
    "TransactionController",
    "TransactionError",
    "TransactionResult",
    "TransactionRouter",
    "TransactionState",
    "run_transaction",
    "run_transaction_async",
    "set_error_code",
]
