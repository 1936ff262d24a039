from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from transactor.exception import TransactorError

ERROR_NONE: Optional[int] = None


class TransactionState(Enum):
    """Lifecycle of a single attempt"""

    IDLE = "idle"
    IN_TRANSACTION = "in_transaction"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class Outcome(Enum):
    """How an attempt ended"""

    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    BEGIN_FAILED = "begin_failed"
    COMMIT_FAILED = "commit_failed"
    ROLLBACK_FAILED = "rollback_failed"


class TransactionError(TransactorError):
    """Base exception for transaction errors"""

    pass


@dataclass(frozen=True)
class TransactionResult:
    outcome: Outcome
    error_code: Optional[int] = ERROR_NONE
    error: Optional[BaseException] = None
    failure: Optional[BaseException] = None
    autocommit_restored: Optional[bool] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is Outcome.COMMITTED

    @property
    def rolled_back(self) -> bool:
        """The work was not kept, whatever the reason"""
        return not self.succeeded

    @property
    def infrastructure_failure(self) -> bool:
        """A connection-level call failed, as opposed to the unit of work
        asking for a rollback"""
        return (
            self.outcome
            in (
                Outcome.BEGIN_FAILED,
                Outcome.COMMIT_FAILED,
                Outcome.ROLLBACK_FAILED,
            )
            or self.autocommit_restored is False
        )

    def __bool__(self) -> bool:
        return self.succeeded


class Attempt:
    """Mutable state of the attempt currently running in this context"""

    __slots__ = ("error_code",)

    def __init__(self) -> None:
        self.error_code: Optional[int] = ERROR_NONE


_current_attempt: ContextVar[Optional[Attempt]] = ContextVar(
    "current_attempt", default=None
)


def current_attempt() -> Attempt:
    attempt = _current_attempt.get()
    if attempt is None:
        raise TransactionError(
            "No transaction attempt is running in this context"
        )
    return attempt


def set_error_code(code: int) -> None:
    """Attach an error code to the running attempt. Call this from inside a
    unit of work right before returning ``False`` or raising.

    Args:
        code (int): Caller defined failure reason
    """
    current_attempt().error_code = code
