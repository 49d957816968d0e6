from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from oandav20.core.errors import AdapterError, ErrorKind

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of a public adapter operation.

    Either a success carrying ``value`` (which may legitimately be an empty
    list) or a failure carrying the ``AdapterError`` that stopped it.
    Truthiness follows ``ok``.
    """

    value: Optional[T] = None
    error: Optional[AdapterError] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: AdapterError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error is not None else None

    @property
    def message(self) -> str:
        return self.error.message if self.error is not None else ""

    def unwrap(self) -> T:
        """Return the value, or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value

    def __bool__(self) -> bool:
        return self.ok
