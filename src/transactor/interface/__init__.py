from typing import Any, Iterable, Type, Union

from transactor.exception import TransactorError

from .base import AsyncBaseConnection, BaseConnection
from .psycopg import AsyncPsycopgConnection, PsycopgConnection
from .sqlite import SQLiteConnection

CONTROL_METHODS = ("set_autocommit", "commit", "rollback")


def _resolve(
    connection: Any,
    base: Union[Type[BaseConnection], Type[AsyncBaseConnection]],
    adapters: Iterable[Any],
) -> Any:
    if isinstance(connection, base):
        return connection

    for adapter in sorted(adapters, key=lambda cls: cls.__qualname__):
        if adapter.handles(connection):
            return adapter(connection)

    if all(
        callable(getattr(connection, name, None)) for name in CONTROL_METHODS
    ):
        return connection

    raise TransactorError(
        f"Cannot manage transactions on {type(connection).__qualname__}. "
        f"Wrap it in a {base.__name__} subclass that implements "
        "set_autocommit()"
    )


def adapt(connection: Any) -> Any:
    """Return an object the transaction router can drive for ``connection``.

    Adapters already in place and objects exposing ``set_autocommit``,
    ``commit`` and ``rollback`` are used as is. Raw driver connections are
    wrapped by the first registered adapter that handles them.

    Args:
        connection: Driver connection or adapter

    Raises:
        TransactorError: No adapter handles the connection
    """
    return _resolve(
        connection, BaseConnection, BaseConnection.registered_connections
    )


def adapt_async(connection: Any) -> Any:
    """Async counterpart of ``adapt``"""
    return _resolve(
        connection,
        AsyncBaseConnection,
        AsyncBaseConnection.registered_connections,
    )


__all__ = (
    "adapt",
    "adapt_async",
    "AsyncBaseConnection",
    "AsyncPsycopgConnection",
    "BaseConnection",
    "PsycopgConnection",
    "SQLiteConnection",
)
