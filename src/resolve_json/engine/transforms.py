"""
Transform evaluator.

A transform literal is an array whose head is an ``xf_*`` tag:

    ["xf_join", "Hello, ", "$name"]
    ["xf_map", "@/users", ["xf_pick", "$", ["name"]]]

Non-iterating operators are pure functions of already-resolved arguments.
The iterating operators (xf_map, xf_some, xf_first) receive their source
resolved first and a callback that resolves the mapper expression for each
element with "$" bound to it. Callbacks use immediate resolution, so loop
results never write into the shared document.

"undefined" results are represented by ``UNRESOLVED``.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Callable, Sequence
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from .classifier import ExpressionType, classify
from .exceptions import TransformArityError, UnknownTransformError
from .nodes import Node, is_boolean_result_transform, is_unresolved
from .projection import deref, get_in, is_fully_resolved
from .sentinel import UNRESOLVED

if TYPE_CHECKING:
    from .context import ResolveContext

logger = logging.getLogger(__name__)

Resolver = Callable[[Any], Any]

# ============================================================================
# Value semantics
# ============================================================================


def is_truthy(value: Any) -> bool:
    """
    Truthiness of a document value.

    false, null, 0, NaN, "" and the sentinel are falsy. Every object and
    array is truthy, including empty ones.
    """
    value = deref(value)
    if value is UNRESOLVED or value is None or value is False:
        return False
    if isinstance(value, bool):
        return True
    if isinstance(value, int | float):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return value != ""
    return True


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def strict_equal(a: Any, b: Any) -> bool:
    """Equality without coercion between booleans, numbers and strings."""
    a, b = deref(a), deref(b)
    if a is b:
        return True
    if _is_number(a) and _is_number(b):
        return a == b
    return type(a) is type(b) and a == b


def to_text(value: Any) -> str:
    """Stringify a document value the way it reads in JSON."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, dict | list):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


# ============================================================================
# Operators
# ============================================================================


def bool_(*args: Any) -> bool:
    return all(is_truthy(arg) for arg in args)


def concat(*args: Any) -> list[Any]:
    """Flatten array arguments one level; scalars pass through."""
    result: list[Any] = []
    for arg in args:
        arg = deref(arg)
        if isinstance(arg, list | tuple):
            result.extend(deref(item) for item in arg)
        else:
            result.append(arg)
    return result


_MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]  # fmt: skip
_WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def _hour12(d: datetime) -> int:
    return d.hour % 12 or 12


_DATE_TOKENS: dict[str, Callable[[datetime], str]] = {
    "yyyy": lambda d: f"{d.year:04d}",
    "yy": lambda d: f"{d.year % 100:02d}",
    "MMMM": lambda d: _MONTHS[d.month - 1],
    "MMM": lambda d: _MONTHS[d.month - 1][:3],
    "MM": lambda d: f"{d.month:02d}",
    "M": lambda d: str(d.month),
    "dd": lambda d: f"{d.day:02d}",
    "d": lambda d: str(d.day),
    "EEEE": lambda d: _WEEKDAYS[d.weekday()],
    "E": lambda d: _WEEKDAYS[d.weekday()][:3],
    "HH": lambda d: f"{d.hour:02d}",
    "H": lambda d: str(d.hour),
    "hh": lambda d: f"{_hour12(d):02d}",
    "h": lambda d: str(_hour12(d)),
    "mm": lambda d: f"{d.minute:02d}",
    "m": lambda d: str(d.minute),
    "ss": lambda d: f"{d.second:02d}",
    "s": lambda d: str(d.second),
    "S": lambda d: f"{d.microsecond // 1000:03d}",
    "a": lambda d: "am" if d.hour < 12 else "pm",
}


def _parse_date(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if _is_number(value):
        try:
            return datetime.fromtimestamp(value / 1000)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return None
    return None


def dateformat(value: Any, fmt: Any = None) -> Any:
    """
    Format ``value`` as a date.

    ``fmt`` is a list of tokens (see _DATE_TOKENS, anything else is literal
    text) or a strftime string. Values that do not parse as a date are
    returned unchanged.

    Example:
        >>> dateformat("2022-12-31T03:30:02", ["MM", "/", "dd", "/", "yyyy", " ", "h", ":", "mm", "a"])
        '12/31/2022 3:30am'
    """
    parsed = _parse_date(deref(value))
    if parsed is None:
        return value

    if isinstance(fmt, str):
        return parsed.strftime(fmt)
    if isinstance(fmt, list | tuple):
        return "".join(
            _DATE_TOKENS[token](parsed) if token in _DATE_TOKENS else to_text(token)
            for token in fmt
        )
    return parsed.isoformat()


def _with_return_value(result: bool, return_value: Any) -> Any:
    return return_value if result and is_truthy(return_value) else result


def eq(a: Any, b: Any, return_value: Any = None) -> Any:
    return _with_return_value(strict_equal(a, b), return_value)


def not_eq(a: Any, b: Any, return_value: Any = None) -> Any:
    return _with_return_value(not strict_equal(a, b), return_value)


def hoist(value: Any) -> Any:
    """First element of an array, or the value itself."""
    value = deref(value)
    if isinstance(value, list | tuple):
        return deref(value[0]) if value else UNRESOLVED
    return value


def invert(value: Any) -> bool:
    return not is_truthy(value)


def join(*args: Any) -> str:
    """Concatenate arguments as text, dropping nulls."""
    return "".join(to_text(arg) for arg in map(deref, args) if arg is not None)


def pick(source: Any, path: Sequence[Any] | str | None = None) -> Any:
    """Nested value at ``path`` inside ``source``, or ``source`` itself."""
    if path:
        return get_in(source, path)
    return deref(source)


def first(candidates: Any, resolver: Resolver) -> Any:
    """
    Value of the first matching candidate expression.

    A boolean-result transform matches when it evaluates truthy; any other
    candidate matches when its value is known and not null.
    """
    for candidate in deref(candidates):
        resolved = resolver(candidate)
        value = deref(resolved)

        if value is UNRESOLVED:
            continue
        if is_boolean_result_transform(resolved) or is_boolean_result_transform(candidate):
            if is_truthy(value):
                return value
            continue
        if value is not None:
            return value

    return UNRESOLVED


def map_(source: Any, resolver: Resolver) -> Any:
    """Resolve the mapper once per element; pending if any element is pending."""
    result = []
    for element in deref(source):
        value = deref(resolver(deref(element)))
        if not is_fully_resolved(value):
            return UNRESOLVED
        result.append(value)
    return result


def some(
    source: Any,
    resolver: Resolver,
    *,
    is_boolean_result: bool,
    return_value: Any = None,
) -> Any:
    """
    True if any element passes the comparator.

    With a boolean-result comparator an element passes when the comparator
    evaluates to true; otherwise when the comparator's value strictly
    equals the element.
    """
    pending = False
    for element in deref(source):
        element = deref(element)
        value = deref(resolver(element))

        if value is UNRESOLVED:
            pending = True
            continue
        if is_boolean_result and value is True:
            return _with_return_value(True, return_value)
        if strict_equal(value, element):
            return _with_return_value(True, return_value)

    return UNRESOLVED if pending else False


TRANSFORMS: dict[str, Callable[..., Any]] = {
    "xf_bool": bool_,
    "xf_concat": concat,
    "xf_dateformat": dateformat,
    "xf_eq": eq,
    "xf_hoist": hoist,
    "xf_invert": invert,
    "xf_join": join,
    "xf_not_eq": not_eq,
    "xf_pick": pick,
}

ITERATING_TRANSFORMS = frozenset({"xf_first", "xf_map", "xf_some"})

KNOWN_TRANSFORMS = frozenset(TRANSFORMS) | ITERATING_TRANSFORMS


# Accepted argument counts as (minimum, maximum); None means unbounded
ARITY: dict[str, tuple[int, int | None]] = {
    "xf_bool": (0, None),
    "xf_concat": (0, None),
    "xf_dateformat": (1, 2),
    "xf_eq": (2, 3),
    "xf_first": (1, 1),
    "xf_hoist": (1, 1),
    "xf_invert": (1, 1),
    "xf_join": (0, None),
    "xf_map": (2, 2),
    "xf_not_eq": (2, 3),
    "xf_pick": (1, 2),
    "xf_some": (2, 3),
}


def is_iterating(tag: str) -> bool:
    return tag in ITERATING_TRANSFORMS


def check_transform(definition: Sequence[Any], context: ResolveContext | None = None) -> None:
    """
    Check a transform literal before evaluating it.

    Raises:
        UnknownTransformError: If the tag has no operator
        TransformArityError: If the operator does not take that many arguments
    """
    tag = definition[0]
    location = context.current_location if context is not None else ()
    if tag not in KNOWN_TRANSFORMS:
        raise UnknownTransformError(tag, location)

    count = len(definition) - 1
    minimum, maximum = ARITY[tag]
    if count < minimum or (maximum is not None and count > maximum):
        if maximum is None:
            expected = f"at least {minimum}"
        elif minimum == maximum:
            expected = str(minimum)
        else:
            expected = f"{minimum} to {maximum}"
        raise TransformArityError(tag, count, expected, location)


# ============================================================================
# Iterating operators
# ============================================================================


def resolve_source(definition: Sequence[Any], context: ResolveContext) -> Any:
    """
    Resolve the first argument of an iterating transform.

    Returns a node (for expressions) or a plain value. A literal candidate
    list of xf_first is returned untouched: its entries are resolved one by
    one by the operator itself.
    """
    from .resolver import resolve_immediate

    source = definition[1] if len(definition) > 1 else UNRESOLVED
    if definition[0] == "xf_first" and classify(source) is ExpressionType.ARRAY:
        return source
    return resolve_immediate(source, context)


def apply_iterating(
    definition: Sequence[Any],
    source: Any,
    context: ResolveContext,
    *,
    collect: list[Node] | None = None,
) -> Any:
    """
    Run xf_map / xf_some / xf_first over an already resolved source.

    Nodes created for candidates, the mapper and the return value are
    appended to ``collect`` when given.
    """
    from .resolver import resolve_immediate

    def immediate(expression: Any, ctx: ResolveContext) -> Any:
        return resolve_immediate(expression, ctx, collect=collect)

    tag, *args = definition
    source = deref(source)

    if tag == "xf_first":
        if not isinstance(source, list | tuple):
            logger.warning(f"xf_first at {list(context.current_location)} expects a list of candidates")
            return UNRESOLVED
        return first(source, lambda candidate: immediate(candidate, context))

    if not isinstance(source, list | tuple):
        logger.warning(
            f"{tag} at {list(context.current_location)} expects a list source, "
            f"got {type(source).__name__}"
        )
        return UNRESOLVED

    mapper = args[1]

    def resolver(element: Any) -> Any:
        return immediate(mapper, context.with_element(element))

    if tag == "xf_map":
        return map_(source, resolver)

    return_value = None
    if len(args) > 2:
        return_value = deref(immediate(args[2], context))
        if return_value is UNRESOLVED:
            return UNRESOLVED

    return some(
        source,
        resolver,
        is_boolean_result=is_boolean_result_transform(mapper),
        return_value=return_value,
    )


def transform(definition: Sequence[Any], context: ResolveContext | None = None) -> Any:
    """
    Evaluate a transform.

    For non-iterating tags the arguments must already be resolved. Iterating
    tags resolve their own source and mapper against ``context``.

    Args:
        definition: ``[tag, *args]``
        context: Resolution context (an empty document if omitted)

    Returns:
        The result, or ``UNRESOLVED`` when it cannot be computed yet

    Raises:
        UnknownTransformError: If the tag has no operator
        TransformArityError: If the operator does not take that many arguments
    """
    if context is None:
        from .context import def_context

        context = def_context({})

    tag, *args = definition
    check_transform(definition, context)

    if is_iterating(tag):
        source = resolve_source(definition, context)
        if is_unresolved(source):
            return UNRESOLVED
        return apply_iterating(definition, source, context)

    return TRANSFORMS[tag](*args)


__all__ = [
    "ARITY",
    "TRANSFORMS",
    "ITERATING_TRANSFORMS",
    "KNOWN_TRANSFORMS",
    "apply_iterating",
    "check_transform",
    "is_iterating",
    "is_truthy",
    "resolve_source",
    "strict_equal",
    "to_text",
    "transform",
]
