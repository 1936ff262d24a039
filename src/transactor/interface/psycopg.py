from __future__ import annotations

from typing import Any

from transactor.interface.base import AsyncBaseConnection, BaseConnection

try:
    from psycopg import AsyncConnection, Connection

    PSYCOPG_ENABLED = True
except ModuleNotFoundError:
    PSYCOPG_ENABLED = False


class PsycopgConnection(BaseConnection):
    """Adapter for a blocking psycopg 3 ``Connection``"""

    ENABLED = PSYCOPG_ENABLED
    extra = "postgres"

    @classmethod
    def handles(cls, connection: Any) -> bool:
        return cls.ENABLED and isinstance(connection, Connection)

    def set_autocommit(self, enabled: bool) -> None:
        self._connection.autocommit = enabled


class AsyncPsycopgConnection(AsyncBaseConnection):
    """Adapter for a psycopg 3 ``AsyncConnection``"""

    ENABLED = PSYCOPG_ENABLED
    extra = "postgres"

    @classmethod
    def handles(cls, connection: Any) -> bool:
        return cls.ENABLED and isinstance(connection, AsyncConnection)

    async def set_autocommit(self, enabled: bool) -> None:
        await self._connection.set_autocommit(enabled)
