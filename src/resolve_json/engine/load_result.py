"""Failure-as-value results for document loading and wait-graph checks.

Resolution itself raises exceptions (see exceptions.py) and represents
pending values with the UNRESOLVED sentinel; loading a document and
ordering the scheduler's waits report problems through LoadResult instead.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class LoadResult(Generic[T]):  # noqa: UP046
    """
    Outcome of loading or checking something.

    A result is a failure exactly when it carries an error message. A
    success may carry ``None``: the JSON document ``null`` is a valid
    document.
    """

    value: T | None = None
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    @classmethod
    def success(cls, value: T, metadata: dict[str, Any] | None = None) -> "LoadResult[T]":
        return cls(value=value, metadata=metadata or {})

    @classmethod
    def failure(cls, error: str, metadata: dict[str, Any] | None = None) -> "LoadResult[T]":
        """
        Raises:
            ValueError: If ``error`` is empty
        """
        if not error:
            raise ValueError("Failed result must have an error message")
        return cls(error=error, metadata=metadata or {})

    def unwrap(self) -> T:
        """Get value or raise exception if failed."""
        if self.is_failure:
            raise ValueError(f"Cannot unwrap failed result: {self.error}")
        return self.value  # type: ignore[return-value]


__all__ = ["LoadResult"]
