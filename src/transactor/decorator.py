from functools import wraps
from inspect import iscoroutinefunction
from logging import Logger
from typing import Optional

from transactor.transaction.async_router import run_transaction_async
from transactor.transaction.router import Hook, run_transaction


def transactional(
    f=None,
    *,
    on_commit: Optional[Hook] = None,
    on_rollback: Optional[Hook] = None,
    logger: Optional[Logger] = None,
):
    """Convenience decorator to run a function as a unit of work. The
    decorated function takes the connection first and returns ``True`` to
    commit. Calling it returns the ``TransactionResult`` instead.

    Example:

    ```python
    from transactor import set_error_code, transactional

    @transactional
    def rename(conn, item_id: int, name: str) -> bool:
        cursor = conn.execute(
            "UPDATE items SET name = ? WHERE item_id = ?", (name, item_id)
        )
        if cursor.rowcount != 1:
            set_error_code(NOT_FOUND)
            return False
        return True

    result = rename(conn, 1, "foo")
    ```

    Coroutine functions are supported and return an awaitable.

    Args:
        on_commit (Hook, optional): Called with the result after a commit
        on_rollback (Hook, optional): Called with the result when the work
            was not kept
        logger (Logger, optional): Receives failure reports
    """

    def decorator(func):
        if iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(connection, *args, **kwargs):
                return await run_transaction_async(
                    connection,
                    lambda conn: func(conn, *args, **kwargs),
                    on_commit=on_commit,
                    on_rollback=on_rollback,
                    logger=logger,
                )

            return async_wrapper

        @wraps(func)
        def wrapper(connection, *args, **kwargs):
            return run_transaction(
                connection,
                lambda conn: func(conn, *args, **kwargs),
                on_commit=on_commit,
                on_rollback=on_rollback,
                logger=logger,
            )

        return wrapper

    if f is not None:
        return decorator(f)
    return decorator
