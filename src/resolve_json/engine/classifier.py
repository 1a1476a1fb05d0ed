"""
Expression classification for resolver dispatch.

Every value found in a document is classified once, and the resolver routes
on the resulting ExpressionType. Classification follows a fixed priority so
that a literal matching several shapes is always read the same way:

    NODE        already replaced by a node on an earlier visit
    VARIABLE    "$name", "$", ["$name", ...path]
    TRANSFORM   ["xf_<tag>", ...args]
    REFERENCE   "@/a", "@a", ["@@/a", ...args], ["@@a", ...args]
    RESOURCE    {"method": ..., "path": ...} (asynchronous resolution only)
    RECORD      any other dict
    ARRAY       any other list
    LITERAL     everything else
"""

from enum import Enum
from typing import Any

from .nodes import Node

TRANSFORM_PREFIX = "xf_"
VARIABLE_PREFIX = "$"
REFERENCE_PREFIX = "@"
ARRAY_REFERENCE_PREFIX = "@@"
RESOURCE_REQUIRED_KEYS = frozenset({"method", "path"})
RESOURCE_KEYS = RESOURCE_REQUIRED_KEYS | {"query", "body", "headers"}


class ExpressionType(Enum):
    """Kinds of document values, in classification priority order."""

    NODE = "node"
    VARIABLE = "variable"  # "$name"
    TRANSFORM = "transform"  # ["xf_map", ...]
    REFERENCE = "reference"  # "@/a/b"
    RESOURCE = "resource"  # {"method": "GET", "path": ...}
    RECORD = "record"
    ARRAY = "array"
    LITERAL = "literal"

    @property
    def is_expression(self) -> bool:
        return self in _EXPRESSION_TYPES


_EXPRESSION_TYPES = frozenset(
    {ExpressionType.VARIABLE, ExpressionType.TRANSFORM, ExpressionType.REFERENCE}
)


class ExpressionClassifier:
    """
    Classify document values to route them to the right resolver.

    Example:
        classifier = ExpressionClassifier()
        classifier.classify(["xf_join", "a", "$b"])
        # Returns: ExpressionType.TRANSFORM
    """

    def classify(self, value: Any, *, allow_resources: bool = False) -> ExpressionType:
        """
        Classify a document value.

        Args:
            value: Any value found in a document
            allow_resources: Recognize resource shapes (asynchronous mode)

        Returns:
            ExpressionType enum value
        """
        if isinstance(value, Node):
            return ExpressionType.NODE

        if isinstance(value, str):
            return self._classify_string(value)

        if isinstance(value, list):
            return self._classify_array(value)

        if isinstance(value, dict):
            if allow_resources and self._is_resource(value):
                return ExpressionType.RESOURCE
            return ExpressionType.RECORD

        return ExpressionType.LITERAL

    def _classify_string(self, value: str) -> ExpressionType:
        if value.startswith(VARIABLE_PREFIX):
            return ExpressionType.VARIABLE
        if value.startswith(REFERENCE_PREFIX):
            return ExpressionType.REFERENCE
        return ExpressionType.LITERAL

    def _classify_array(self, value: list[Any]) -> ExpressionType:
        head = value[0] if value else None
        if not isinstance(head, str):
            return ExpressionType.ARRAY

        if head.startswith(VARIABLE_PREFIX):
            return ExpressionType.VARIABLE
        if head.startswith(TRANSFORM_PREFIX):
            return ExpressionType.TRANSFORM
        if head.startswith(ARRAY_REFERENCE_PREFIX):
            return ExpressionType.REFERENCE
        return ExpressionType.ARRAY

    @staticmethod
    def _is_resource(value: dict[str, Any]) -> bool:
        keys = set(value)
        return RESOURCE_REQUIRED_KEYS <= keys and keys <= RESOURCE_KEYS


classifier = ExpressionClassifier()


def classify(value: Any, *, allow_resources: bool = False) -> ExpressionType:
    """Classify ``value`` with the shared classifier."""
    return classifier.classify(value, allow_resources=allow_resources)


def is_absolute_reference(value: Any) -> bool:
    head = value if isinstance(value, str) else value[0]
    return head.startswith(("@/", "@@/"))


__all__ = [
    "ExpressionType",
    "ExpressionClassifier",
    "classifier",
    "classify",
    "is_absolute_reference",
]
