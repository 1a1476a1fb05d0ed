"""Resolution errors.

Only configuration errors are exceptions. A dependency that cannot be
satisfied yet is not an error: it is represented by the ``UNRESOLVED``
sentinel and recovered by resolving again with more variables.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class ResolverError(Exception):
    """Base class for fatal document configuration errors."""


class InvalidPathError(ResolverError):
    """
    A relative path ascends past the document root.

    Raised by ``abs_path`` when a ``..`` segment is applied to an empty
    accumulator, e.g. ``"@../../x"`` written one level below the root.

    Attributes:
        segments: The full segment sequence that was being folded
    """

    def __init__(self, segments: Sequence[Any]):
        self.segments = list(segments)
        joined = "/".join(str(s) for s in self.segments)
        super().__init__(f"Invalid path {joined}: '..' ascends past the document root")

    def __repr__(self) -> str:
        return f"InvalidPathError(segments={self.segments!r})"


class UnknownTransformError(ResolverError):
    """
    A transform literal uses a tag that has no operator.

    Attributes:
        tag: The unrecognized ``xf_*`` tag
        location: Document location of the transform (may be empty)
    """

    def __init__(self, tag: str, location: Sequence[str | int] = ()):
        self.tag = tag
        self.location = list(location)
        where = "/".join(str(s) for s in self.location) or "<root>"
        super().__init__(f"Unknown transform {tag!r} at {where}")

    def __repr__(self) -> str:
        return f"UnknownTransformError(tag={self.tag!r}, location={self.location!r})"


class CircularReferenceError(ResolverError):
    """
    Resolving a location requires resolving that same location again.

    Attributes:
        location: Location that was re-entered
        chain: Locations in progress when the cycle was detected
    """

    def __init__(self, location: Sequence[str | int], chain: Sequence[Sequence[str | int]] = ()):
        self.location = list(location)
        self.chain = [list(loc) for loc in chain]
        where = "/".join(str(s) for s in self.location) or "<root>"
        super().__init__(f"Circular reference detected at {where}")

    def __repr__(self) -> str:
        return f"CircularReferenceError(location={self.location!r})"


class ReferenceDepthExceededError(ResolverError):
    """
    A chain of references is nested deeper than the configured limit.

    The limit is controlled by the RESOLVE_JSON_MAX_REFERENCE_DEPTH
    environment variable (default: 100).

    Attributes:
        location: Location being resolved when the limit was hit
        depth: Depth reached
        max_depth: Configured limit
    """

    def __init__(self, location: Sequence[str | int], depth: int, max_depth: int):
        self.location = list(location)
        self.depth = depth
        self.max_depth = max_depth
        where = "/".join(str(s) for s in self.location) or "<root>"
        super().__init__(
            f"Reference depth limit exceeded at {where} "
            f"(depth: {depth}, limit: {max_depth}). To increase the limit, set the "
            f"RESOLVE_JSON_MAX_REFERENCE_DEPTH environment variable to a higher value."
        )

    def __repr__(self) -> str:
        return (
            f"ReferenceDepthExceededError(location={self.location!r}, "
            f"depth={self.depth}, limit={self.max_depth})"
        )


class TransformArityError(ResolverError):
    """
    A transform literal has the wrong number of arguments.

    Attributes:
        tag: The ``xf_*`` tag
        count: Number of arguments given
        expected: Human-readable accepted range, e.g. "2 to 3"
        location: Document location of the transform (may be empty)
    """

    def __init__(self, tag: str, count: int, expected: str, location: Sequence[str | int] = ()):
        self.tag = tag
        self.count = count
        self.expected = expected
        self.location = list(location)
        where = "/".join(str(s) for s in self.location) or "<root>"
        super().__init__(f"Transform {tag!r} at {where} takes {expected} argument(s), got {count}")

    def __repr__(self) -> str:
        return (
            f"TransformArityError(tag={self.tag!r}, count={self.count}, "
            f"expected={self.expected!r}, location={self.location!r})"
        )
