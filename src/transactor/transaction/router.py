from __future__ import annotations

import logging
from dataclasses import replace
from inspect import isawaitable
from typing import Any, Callable, List, Optional, Sequence

from transactor.interface import adapt

from .interfaces import (
    Attempt,
    Outcome,
    TransactionError,
    TransactionResult,
    TransactionState,
    _current_attempt,
)

Hook = Callable[[TransactionResult], Any]


def resolve_work(
    work: Any,
    on_commit: Optional[Hook] = None,
    on_rollback: Optional[Hook] = None,
):
    """Split a unit of work into its ``process`` callable and the hooks to
    fire on each path.

    ``work`` is either a plain callable or an object with a ``process``
    method. Objects may also provide ``on_commit()``, ``on_rollback()`` and
    ``on_rollback_code(error_code)``; those fire before the explicit
    callbacks.
    """
    commit_hooks: List[Hook] = []
    rollback_hooks: List[Hook] = []

    process = getattr(work, "process", None)
    if callable(process):
        if callable(getattr(work, "on_commit", None)):
            commit_hooks.append(lambda _: work.on_commit())
        if callable(getattr(work, "on_rollback", None)):
            rollback_hooks.append(lambda _: work.on_rollback())
        if callable(getattr(work, "on_rollback_code", None)):
            rollback_hooks.append(
                lambda result: work.on_rollback_code(result.error_code)
            )
    elif callable(work):
        process = work
    else:
        raise TransactionError(
            f"{work!r} is neither callable nor has a process() method"
        )

    if on_commit:
        commit_hooks.append(on_commit)
    if on_rollback:
        rollback_hooks.append(on_rollback)

    return process, commit_hooks, rollback_hooks


def _discard(awaitable: Any) -> None:
    close = getattr(awaitable, "close", None)
    if callable(close):
        close()


class TransactionRouter:
    """Runs one attempt: disable auto-commit, run the unit of work, commit or
    roll back, fire hooks, restore auto-commit.

    Nothing raised by the unit of work or by the connection escapes
    ``route``. Only non-``Exception`` errors (KeyboardInterrupt and
    friends) propagate, and only after auto-commit has been restored.
    """

    def __init__(
        self,
        process: Callable[[Any], Any],
        commit_hooks: Sequence[Hook] = (),
        rollback_hooks: Sequence[Hook] = (),
        logger: Optional[logging.Logger] = None,
    ):
        self.process = process
        self.commit_hooks = list(commit_hooks)
        self.rollback_hooks = list(rollback_hooks)
        self.logger = logger or logging.getLogger(__name__)
        self.state = TransactionState.IDLE
        self.result: Optional[TransactionResult] = None

    @classmethod
    def for_work(
        cls,
        work: Any,
        on_commit: Optional[Hook] = None,
        on_rollback: Optional[Hook] = None,
        logger: Optional[logging.Logger] = None,
    ) -> TransactionRouter:
        process, commit_hooks, rollback_hooks = resolve_work(
            work, on_commit, on_rollback
        )
        return cls(process, commit_hooks, rollback_hooks, logger)

    def route(self, connection: Any) -> TransactionResult:
        control = adapt(connection)
        attempt = Attempt()
        self.result = None
        token = _current_attempt.set(attempt)
        try:
            self._dispatch(connection, control, attempt)
        except BaseException:
            if self.state is TransactionState.IN_TRANSACTION:
                self._abort(control)
            raise
        finally:
            _current_attempt.reset(token)
            restored = self._restore(control)
            self.state = TransactionState.IDLE

        if self.result is None:
            raise TransactionError("Attempt ended without an outcome")
        self.result = replace(self.result, autocommit_restored=restored)
        return self.result

    def _dispatch(self, connection: Any, control: Any, attempt: Attempt):
        self.state = TransactionState.IN_TRANSACTION
        self.logger.debug("Disabling auto-commit on %s", control)

        try:
            control.set_autocommit(False)
        except Exception as e:
            self.logger.error(
                "Could not disable auto-commit on %s", control, exc_info=e
            )
            self._rollback(control, attempt, Outcome.BEGIN_FAILED, error=e)
            return

        try:
            keep = self.process(connection)
            if isawaitable(keep):
                _discard(keep)
                raise TransactionError(
                    "Unit of work returned an awaitable; "
                    "use run_transaction_async for coroutine functions"
                )
        except Exception as e:
            self.logger.error(
                "Unit of work raised, rolling back (error code %s)",
                attempt.error_code,
                exc_info=e,
            )
            self._rollback(control, attempt, error=e)
            return

        if keep:
            self._commit(control, attempt)
        else:
            self.logger.debug(
                "Unit of work requested rollback (error code %s)",
                attempt.error_code,
            )
            self._rollback(control, attempt)

    def _commit(self, control: Any, attempt: Attempt):
        try:
            control.commit()
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
            self._fire(self.rollback_hooks)
            return

        self.state = TransactionState.COMMITTED
        self.result = TransactionResult(Outcome.COMMITTED, attempt.error_code)
        self.logger.debug("Committed on %s", control)
        self._fire(self.commit_hooks)

    def _rollback(
        self,
        control: Any,
        attempt: Attempt,
        outcome: Outcome = Outcome.ROLLED_BACK,
        error: Optional[BaseException] = None,
    ):
        failure = None
        try:
            control.rollback()
        except Exception as e:
            self.logger.error("Rollback failed on %s", control, exc_info=e)
            failure = e
            if outcome is Outcome.ROLLED_BACK:
                outcome = Outcome.ROLLBACK_FAILED

        self.state = TransactionState.ROLLED_BACK
        self.result = TransactionResult(
            outcome, attempt.error_code, error=error, failure=failure
        )
        self._fire(self.rollback_hooks)

    def _fire(self, hooks: Sequence[Hook]):
        for hook in hooks:
            try:
                value = hook(self.result)
                if isawaitable(value):
                    _discard(value)
                    raise TransactionError(
                        f"Hook {hook!r} returned an awaitable; "
                        "use run_transaction_async for coroutine hooks"
                    )
            except Exception as e:
                self.logger.error(
                    "Transaction hook %r raised", hook, exc_info=e
                )

    def _abort(self, control: Any):
        self.logger.warning(
            "Attempt interrupted, rolling back on %s", control
        )
        try:
            control.rollback()
        except Exception as e:
            self.logger.error("Rollback failed on %s", control, exc_info=e)

    def _restore(self, control: Any) -> bool:
        try:
            control.set_autocommit(True)
        except Exception as e:
            self.logger.error(
                "Could not restore auto-commit on %s", control, exc_info=e
            )
            return False
        return True


def run_transaction(
    connection: Any,
    work: Any,
    *,
    on_commit: Optional[Hook] = None,
    on_rollback: Optional[Hook] = None,
    logger: Optional[logging.Logger] = None,
) -> TransactionResult:
    """Run a unit of work inside a transaction on ``connection``.

    Example:

    ```python
    def transfer(conn) -> bool:
        conn.execute("UPDATE accounts SET ...")
        if overdrawn(conn):
            set_error_code(INSUFFICIENT_FUNDS)
            return False
        return True

    result = run_transaction(conn, transfer)
    if not result:
        print(result.outcome, result.error_code)
    ```

    Args:
        connection: A connection offering ``set_autocommit``, ``commit``
            and ``rollback``, or a raw driver connection with a registered
            adapter
        work: ``work(connection) -> bool`` or an object with ``process``
        on_commit: Called with the result after a successful commit
        on_rollback: Called with the result whenever the work was not kept
        logger: Receives failure reports. Defaults to this module's logger

    Returns:
        TransactionResult: How the attempt ended
    """
    router = TransactionRouter.for_work(work, on_commit, on_rollback, logger)
    return router.route(connection)
