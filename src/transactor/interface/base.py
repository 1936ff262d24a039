from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Set, Tuple, Type

from transactor.exception import TransactorError


class _Adapter(ABC):
    driver_modules: Tuple[str, ...] = ()
    extra: str = ""
    ENABLED: bool = True

    def __init__(self, connection: Any) -> None:
        if not self.ENABLED:
            raise TransactorError(
                f"Cannot instantiate {self.__class__.__name__}. "
                "Driver not found. Try reinstalling Transactor: "
                f"pip install transactor[{self.extra}]"
            )
        self._connection = connection

    def __str__(self) -> str:
        return f"<{self.__class__.__name__} {self._connection!r}>"

    @property
    def connection(self) -> Any:
        """The wrapped driver connection"""
        return self._connection

    @classmethod
    def handles(cls, connection: Any) -> bool:
        """Whether this adapter knows how to drive ``connection``"""
        if not cls.ENABLED:
            return False
        module = type(connection).__module__
        return any(
            module == name or module.startswith(f"{name}.")
            for name in cls.driver_modules
        )


class BaseConnection(_Adapter):
    """Wraps a blocking DB-API connection so the transaction router can toggle
    auto-commit, commit and roll back on it"""

    registered_connections: Set[Type[BaseConnection]] = set()

    def __init_subclass__(cls) -> None:
        BaseConnection.registered_connections.add(cls)

    @abstractmethod
    def set_autocommit(self, enabled: bool) -> None: ...

    def commit(self) -> None:
        self._connection.commit()

    def rollback(self) -> None:
        self._connection.rollback()


class AsyncBaseConnection(_Adapter):
    """Wraps an asyncio driver connection"""

    registered_connections: Set[Type[AsyncBaseConnection]] = set()

    def __init_subclass__(cls) -> None:
        AsyncBaseConnection.registered_connections.add(cls)

    @abstractmethod
    async def set_autocommit(self, enabled: bool) -> None: ...

    async def commit(self) -> None:
        await self._connection.commit()

    async def rollback(self) -> None:
        await self._connection.rollback()
