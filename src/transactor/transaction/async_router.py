from __future__ import annotations

import logging
from dataclasses import replace
from inspect import isawaitable
from typing import Any, Optional, Sequence

from transactor.interface import adapt_async

from .interfaces import (
    Attempt,
    Outcome,
    TransactionError,
    TransactionResult,
    TransactionState,
    _current_attempt,
)
from .router import Hook, TransactionRouter


async def maybe_await(value: Any) -> Any:
    if isawaitable(value):
        return await value
    return value


class AsyncTransactionRouter(TransactionRouter):
    """Same sequence as ``TransactionRouter``, awaiting the connection, the
    unit of work and any hook that returns an awaitable."""

    async def route(  # type: ignore[override]
        self, connection: Any
    ) -> TransactionResult:
        control = adapt_async(connection)
        attempt = Attempt()
        self.result = None
        token = _current_attempt.set(attempt)
        try:
            await self._dispatch(connection, control, attempt)
        except BaseException:
            if self.state is TransactionState.IN_TRANSACTION:
                await self._abort(control)
            raise
        finally:
            _current_attempt.reset(token)
            restored = await self._restore(control)
            self.state = TransactionState.IDLE

        if self.result is None:
            raise TransactionError("Attempt ended without an outcome")
        self.result = replace(self.result, autocommit_restored=restored)
        return self.result

    async def _dispatch(  # type: ignore[override]
        self, connection: Any, control: Any, attempt: Attempt
    ):
        self.state = TransactionState.IN_TRANSACTION
        self.logger.debug("Disabling auto-commit on %s", control)

        try:
            await maybe_await(control.set_autocommit(False))
        except Exception as e:
            self.logger.error(
                "Could not disable auto-commit on %s", control, exc_info=e
            )
            await self._rollback(
                control, attempt, Outcome.BEGIN_FAILED, error=e
            )
            return

        try:
            keep = await maybe_await(self.process(connection))
        except Exception as e:
            self.logger.error(
                "Unit of work raised, rolling back (error code %s)",
                attempt.error_code,
                exc_info=e,
            )
            await self._rollback(control, attempt, error=e)
            return

        if keep:
            await self._commit(control, attempt)
        else:
            self.logger.debug(
                "Unit of work requested rollback (error code %s)",
                attempt.error_code,
            )
            await self._rollback(control, attempt)

    async def _commit(  # type: ignore[override]
        self, control: Any, attempt: Attempt
    ):
        try:
            await maybe_await(control.commit())
        except Exception as e:
            self.logger.error(
                "Commit failed on %s, the work was not kept",
                control,
                exc_info=e,
            )
            self.state = TransactionState.ROLLED_BACK
            self.result = TransactionResult(
                Outcome.COMMIT_FAILED, attempt.error_code, failure=e
            )
            await self._fire(self.rollback_hooks)
            return

        self.state = TransactionState.COMMITTED
        self.result = TransactionResult(Outcome.COMMITTED, attempt.error_code)
        self.logger.debug("Committed on %s", control)
        await self._fire(self.commit_hooks)

    async def _rollback(  # type: ignore[override]
        self,
        control: Any,
        attempt: Attempt,
        outcome: Outcome = Outcome.ROLLED_BACK,
        error: Optional[BaseException] = None,
    ):
        failure = None
        try:
            await maybe_await(control.rollback())
        except Exception as e:
            self.logger.error("Rollback failed on %s", control, exc_info=e)
            failure = e
            if outcome is Outcome.ROLLED_BACK:
                outcome = Outcome.ROLLBACK_FAILED

        self.state = TransactionState.ROLLED_BACK
        self.result = TransactionResult(
            outcome, attempt.error_code, error=error, failure=failure
        )
        await self._fire(self.rollback_hooks)

    async def _fire(self, hooks: Sequence[Hook]):  # type: ignore[override]
        for hook in hooks:
            try:
                await maybe_await(hook(self.result))
            except Exception as e:
                self.logger.error(
                    "Transaction hook %r raised", hook, exc_info=e
                )

    async def _abort(self, control: Any):  # type: ignore[override]
        self.logger.warning(
            "Attempt interrupted, rolling back on %s", control
        )
        try:
            await maybe_await(control.rollback())
        except Exception as e:
            self.logger.error("Rollback failed on %s", control, exc_info=e)

    async def _restore(self, control: Any) -> bool:  # type: ignore[override]
        try:
            await maybe_await(control.set_autocommit(True))
        except Exception as e:
            self.logger.error(
                "Could not restore auto-commit on %s", control, exc_info=e
            )
            return False
        return True


async def run_transaction_async(
    connection: Any,
    work: Any,
    *,
    on_commit: Optional[Hook] = None,
    on_rollback: Optional[Hook] = None,
    logger: Optional[logging.Logger] = None,
) -> TransactionResult:
    """Async version of ``run_transaction``. ``work``, its hooks and the
    callbacks may be coroutine functions or plain functions.

    Args:
        connection: An async connection, or a raw driver connection with a
            registered async adapter
        work: ``work(connection) -> bool`` or an object with ``process``
        on_commit: Called with the result after a successful commit
        on_rollback: Called with the result whenever the work was not kept
        logger: Receives failure reports. Defaults to this module's logger

    Returns:
        TransactionResult: How the attempt ended
    """
    router = AsyncTransactionRouter.for_work(
        work, on_commit, on_rollback, logger
    )
    return await router.route(connection)
