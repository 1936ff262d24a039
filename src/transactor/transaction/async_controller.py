from __future__ import annotations

from abc import abstractmethod
from typing import Any, Optional

from .async_router import AsyncTransactionRouter
from .controller import TransactionController
from .interfaces import TransactionResult


class AsyncTransactionController(TransactionController):
    """
    ``TransactionController`` for asyncio drivers. ``process`` and the hooks
    may be coroutines.

    Example:

    ```python
    class Signup(AsyncTransactionController):
        async def process(self, conn) -> bool:
            await conn.execute("INSERT INTO users ...")
            return True

        async def on_commit(self):
            await send_welcome_mail()

    await Signup().start(conn)
    ```
    """

    async def start(  # type: ignore[override]
        self, connection: Any
    ) -> TransactionResult:
        self._router = AsyncTransactionRouter.for_work(
            self, logger=self.logger
        )
        return await self._router.route(connection)  # type: ignore[misc]

    @abstractmethod
    async def process(self, connection: Any) -> bool:  # type: ignore[override]
        ...

    async def on_commit(self) -> None:  # type: ignore[override]
        ...

    async def on_rollback(self) -> None:  # type: ignore[override]
        ...

    async def on_rollback_code(  # type: ignore[override]
        self, error_code: Optional[int]
    ) -> None:
        ...
