"""Outcome type shared by the use cases."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from app.domain.session import Session


class ErrorKind(Enum):
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    INVALID_INPUT = "invalid_input"
    ALREADY_EXISTS = "already_exists"


@dataclass(frozen=True)
class UseCaseResult:
    """Either the session after the operation or the reason nothing changed."""

    session: Optional[Session] = None
    error: Optional[ErrorKind] = None
    message: str = ""

    @property
    def applied(self) -> bool:
        return self.error is None

    @classmethod
    def ok(cls, session: Optional[Session]) -> "UseCaseResult":
        return cls(session=session)

    @classmethod
    def fail(cls, error: ErrorKind, message: str) -> "UseCaseResult":
        return cls(error=error, message=message)
