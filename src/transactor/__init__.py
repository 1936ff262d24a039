from importlib.metadata import version

from .decorator import transactional
from .exception import TransactorError
from .interface import (
    AsyncBaseConnection,
    AsyncPsycopgConnection,
    BaseConnection,
    PsycopgConnection,
    SQLiteConnection,
    adapt,
    adapt_async,
)
from .transaction import (
    ERROR_NONE,
    AsyncTransactionController,
    Outcome,
    TransactionController,
    TransactionError,
    TransactionResult,
    TransactionState,
    run_transaction,
    run_transaction_async,
    set_error_code,
)

__version__ = version("transactor")

__all__ = (
    "adapt",
    "adapt_async",
    "run_transaction",
    "run_transaction_async",
    "set_error_code",
    "transactional",
    "AsyncBaseConnection",
    "AsyncPsycopgConnection",
    "AsyncTransactionController",
    "BaseConnection",
    "ERROR_NONE",
    "Outcome",
    "PsycopgConnection",
    "SQLiteConnection",
    "TransactionController",
    "TransactionError",
    "TransactionResult",
    "TransactionState",
    "TransactorError",
)
