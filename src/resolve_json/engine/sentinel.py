"""The "not yet known" marker shared by every part of the engine."""

from __future__ import annotations

from typing import Any, Final


class _Unresolved:
    """Singleton type of :data:`UNRESOLVED`.

    The instance is falsy and survives ``copy``/``deepcopy``/pickling as the
    same object, so identity checks (``value is UNRESOLVED``) keep working on
    copied documents.
    """

    _instance: _Unresolved | None = None

    def __new__(cls) -> _Unresolved:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNRESOLVED"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _Unresolved:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _Unresolved:
        return self

    def __reduce__(self) -> str:
        return "UNRESOLVED"


UNRESOLVED: Final = _Unresolved()


__all__ = ["UNRESOLVED"]
