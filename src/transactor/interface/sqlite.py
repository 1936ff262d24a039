from __future__ import annotations

import sqlite3
from typing import Optional

from transactor.interface.base import BaseConnection

LEGACY_TRANSACTION_CONTROL = getattr(
    sqlite3, "LEGACY_TRANSACTION_CONTROL", -1
)


class SQLiteConnection(BaseConnection):
    """Adapter for the standard library ``sqlite3`` driver.

    Connections opened with the ``autocommit`` argument (Python 3.12+) are
    switched through that attribute. Otherwise auto-commit is expressed with
    ``isolation_level``: ``None`` while idle, ``isolation_level`` (deferred
    by default) for the length of a transaction.
    """

    driver_modules = ("sqlite3",)

    def __init__(
        self,
        connection: sqlite3.Connection,
        isolation_level: Optional[str] = "DEFERRED",
    ):
        super().__init__(connection)
        self._isolation_level = isolation_level

    def set_autocommit(self, enabled: bool) -> None:
        autocommit = getattr(
            self._connection, "autocommit", LEGACY_TRANSACTION_CONTROL
        )
        if autocommit != LEGACY_TRANSACTION_CONTROL:
            self._connection.autocommit = enabled
        else:
            self._connection.isolation_level = (
                None if enabled else self._isolation_level
            )
