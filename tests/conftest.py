import sqlite3
from unittest.mock import AsyncMock, Mock

import pytest

from transactor import TransactionController
from transactor.interface import AsyncBaseConnection, BaseConnection


class Recorder(TransactionController):
    def __init__(self, events, work, **kwargs):
        super().__init__(**kwargs)
        self.events = events
        self.work = work

    def process(self, connection):
        return self.work(self, connection)

    def on_commit(self):
        self.events.append("on_commit")

    def on_rollback(self):
        self.events.append("on_rollback")

    def on_rollback_code(self, error_code):
        self.events.append(("on_rollback_code", error_code))


@pytest.fixture(autouse=True)
def reset_adapters():
    registered = set(BaseConnection.registered_connections)
    registered_async = set(AsyncBaseConnection.registered_connections)
    yield
    BaseConnection.registered_connections.clear()
    BaseConnection.registered_connections.update(registered)
    AsyncBaseConnection.registered_connections.clear()
    AsyncBaseConnection.registered_connections.update(registered_async)


@pytest.fixture
def events():
    return []


def _record(connection, events):
    connection.set_autocommit.side_effect = lambda enabled: events.append(
        f"autocommit={enabled}"
    )
    connection.commit.side_effect = lambda: events.append("commit")
    connection.rollback.side_effect = lambda: events.append("rollback")
    return connection


@pytest.fixture
def connection(events):
    return _record(Mock(), events)


@pytest.fixture
def async_connection(events):
    return _record(AsyncMock(), events)


@pytest.fixture
def recorder(events):
    def make(work, **kwargs):
        return Recorder(events, work, **kwargs)

    return make


@pytest.fixture
def sqlite_connection():
    conn = sqlite3.connect(":memory:", isolation_level=None)
    conn.execute("CREATE TABLE items (item_id INTEGER PRIMARY KEY, name TEXT)")
    yield conn
    conn.close()
