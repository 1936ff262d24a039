import sqlite3
from unittest.mock import AsyncMock, Mock

import pytest

from transactor import (
    BaseConnection,
    Outcome,
    PsycopgConnection,
    SQLiteConnection,
    TransactionController,
    TransactorError,
    adapt,
    adapt_async,
    run_transaction,
    set_error_code,
)
from transactor.interface import psycopg as psycopg_interface

DUPLICATE = 11


class InsertItem(TransactionController):
    def __init__(self, item_id, name, keep=True):
        super().__init__()
        self.item_id = item_id
        self.name = name
        self.keep = keep

    def process(self, conn):
        conn.execute(
            "INSERT INTO items (item_id, name) VALUES (?, ?)",
            (self.item_id, self.name),
        )
        return self.keep


def names(conn):
    return [row[0] for row in conn.execute("SELECT name FROM items")]


def test_adapt_wraps_sqlite(sqlite_connection):
    control = adapt(sqlite_connection)

    assert isinstance(control, SQLiteConnection)
    assert control.connection is sqlite_connection
    assert adapt(control) is control


def test_adapt_passes_capable_objects_through():
    connection = Mock()
    assert adapt(connection) is connection
    assert adapt_async(connection) is connection


def test_adapt_unknown_driver():
    with pytest.raises(TransactorError, match="Cannot manage transactions"):
        adapt(object())


def test_adapt_async_rejects_blocking_sqlite(sqlite_connection):
    with pytest.raises(TransactorError):
        adapt_async(sqlite_connection)


def test_custom_adapter_is_registered():
    class RawConnection:
        def __init__(self):
            self.calls = []

        def commit(self):
            self.calls.append("commit")

        def rollback(self):
            self.calls.append("rollback")

    class RawAdapter(BaseConnection):
        @classmethod
        def handles(cls, connection):
            return isinstance(connection, RawConnection)

        def set_autocommit(self, enabled):
            self._connection.calls.append(f"autocommit={enabled}")

    raw = RawConnection()
    result = run_transaction(raw, lambda conn: True)

    assert result.succeeded
    assert raw.calls == ["autocommit=False", "commit", "autocommit=True"]
    assert RawAdapter in BaseConnection.registered_connections


def test_sqlite_commit(sqlite_connection):
    result = InsertItem(1, "foo").start(sqlite_connection)

    assert result.succeeded
    assert names(sqlite_connection) == ["foo"]
    assert not sqlite_connection.in_transaction
    assert sqlite_connection.isolation_level is None


def test_sqlite_logical_rollback(sqlite_connection):
    result = InsertItem(1, "foo", keep=False).start(sqlite_connection)

    assert result.outcome is Outcome.ROLLED_BACK
    assert names(sqlite_connection) == []
    assert not sqlite_connection.in_transaction


def test_sqlite_exception_rolls_back_earlier_statements(sqlite_connection):
    InsertItem(1, "foo").start(sqlite_connection)

    def work(conn):
        conn.execute("INSERT INTO items (item_id, name) VALUES (2, 'bar')")
        set_error_code(DUPLICATE)
        conn.execute("INSERT INTO items (item_id, name) VALUES (1, 'baz')")
        return True

    result = run_transaction(sqlite_connection, work)

    assert result.outcome is Outcome.ROLLED_BACK
    assert result.error_code == DUPLICATE
    assert isinstance(result.error, sqlite3.IntegrityError)
    assert names(sqlite_connection) == ["foo"]
    assert sqlite_connection.isolation_level is None


def test_sqlite_custom_isolation_level(sqlite_connection):
    control = SQLiteConnection(sqlite_connection, isolation_level="IMMEDIATE")

    control.set_autocommit(False)
    assert sqlite_connection.isolation_level == "IMMEDIATE"
    control.set_autocommit(True)
    assert sqlite_connection.isolation_level is None


def test_psycopg_adapter_requires_driver(monkeypatch):
    monkeypatch.setattr(PsycopgConnection, "ENABLED", False)

    with pytest.raises(TransactorError, match=r"transactor\[postgres\]"):
        PsycopgConnection(Mock())
    assert not PsycopgConnection.handles(Mock())


def test_psycopg_adapters_toggle_autocommit():
    if not psycopg_interface.PSYCOPG_ENABLED:
        pytest.skip("psycopg is not installed")

    connection = Mock()
    control = psycopg_interface.PsycopgConnection(connection)
    control.set_autocommit(False)
    assert connection.autocommit is False
    control.commit()
    connection.commit.assert_called_once_with()


async def test_async_psycopg_adapter_awaits_driver():
    if not psycopg_interface.PSYCOPG_ENABLED:
        pytest.skip("psycopg is not installed")

    connection = AsyncMock()
    control = psycopg_interface.AsyncPsycopgConnection(connection)

    await control.set_autocommit(True)
    await control.rollback()

    connection.set_autocommit.assert_awaited_once_with(True)
    connection.rollback.assert_awaited_once_with()
