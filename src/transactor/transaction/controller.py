from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from .interfaces import (
    TransactionResult,
    TransactionState,
    set_error_code,
)
from .router import TransactionRouter


class TransactionController(ABC):
    """
    Base class for a unit of work that runs inside a transaction.

    Implement ``process`` and return ``True`` to keep its effects or
    ``False`` to discard them. Any branch that needs a rollback should
    return ``False`` right away (raising works too). Call
    ``set_error_code`` first to tell the rollback hooks why.

    Example:

    ```python
    class Transfer(TransactionController):
        def process(self, conn) -> bool:
            conn.execute("UPDATE accounts SET ...")
            if overdrawn(conn):
                self.set_error_code(INSUFFICIENT_FUNDS)
                return False
            return True

        def on_rollback_code(self, error_code):
            notify(error_code)

    transfer = Transfer()
    transfer.start(conn)
    if transfer.is_ok():
        ...
    ```

    An instance can be started any number of times; each call to ``start``
    is an independent attempt.
    """

    logger: Optional[logging.Logger] = None
    _router: Optional[TransactionRouter] = None

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger
        self._router = None

    def start(self, connection: Any) -> TransactionResult:
        """Run ``process`` in a transaction on ``connection``. Never raises
        for failures of the work or of the connection.

        Args:
            connection: The connection to manage

        Returns:
            TransactionResult: How the attempt ended
        """
        self._router = TransactionRouter.for_work(self, logger=self.logger)
        return self._router.route(connection)

    @abstractmethod
    def process(self, connection: Any) -> bool:
        """Do the database work here.

        Args:
            connection: The connection passed to ``start``

        Returns:
            bool: ``True`` if the work should be committed
        """

    def set_error_code(self, code: int) -> None:
        set_error_code(code)

    def is_ok(self) -> bool:
        """
        Returns:
            bool: ``True`` if the latest attempt was committed
        """
        result = self.last_result
        return result is not None and result.succeeded

    @property
    def last_result(self) -> Optional[TransactionResult]:
        if self._router is None:
            return None
        return self._router.result

    @property
    def error_code(self) -> Optional[int]:
        result = self.last_result
        return result.error_code if result is not None else None

    @property
    def state(self) -> TransactionState:
        if self._router is None:
            return TransactionState.IDLE
        return self._router.state

    def on_commit(self) -> None:
        """Override to act once the work has been committed"""

    def on_rollback(self) -> None:
        """Override to act whenever the work was not kept: ``process``
        returned ``False`` or raised, or the commit itself failed."""

    def on_rollback_code(self, error_code: Optional[int]) -> None:
        """Same as ``on_rollback`` and called right after it, with the code
        given to ``set_error_code``, or ``None`` if it was never called.

        Args:
            error_code (int, optional): Why the work was rolled back
        """
