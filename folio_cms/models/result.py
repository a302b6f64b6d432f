from enum import Enum
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    BAD_REQUEST = "bad_request"
    STORAGE = "storage"


class Outcome(BaseModel, Generic[T]):
    """Either a value or an expected failure; repositories never raise these."""

    value: Optional[T] = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None
    errors: List[str] = []

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = None) -> "Outcome":
        return cls(value=value)

    @classmethod
    def fail(cls, kind: ErrorKind, error: str, errors: Optional[List[str]] = None) -> "Outcome":
        return cls(kind=kind, error=error, errors=errors or [])

    @classmethod
    def not_found(cls, error: str) -> "Outcome":
        return cls.fail(ErrorKind.NOT_FOUND, error)

    @classmethod
    def invalid(cls, errors: List[str]) -> "Outcome":
        return cls.fail(ErrorKind.VALIDATION, ", ".join(errors), errors)

    @classmethod
    def conflict(cls, error: str) -> "Outcome":
        return cls.fail(ErrorKind.CONFLICT, error)

    @classmethod
    def bad_request(cls, error: str) -> "Outcome":
        return cls.fail(ErrorKind.BAD_REQUEST, error)
