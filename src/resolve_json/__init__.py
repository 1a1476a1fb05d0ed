"""resolve-json: declarative resolution of references, variables and transforms in JSON documents.

Documents are ordinary JSON whose strings and arrays may be expressions:

    "$name"                       variable
    "@/a/b", "@a/b"               absolute / relative reference
    ["@@/a", "$key"]              reference with computed segments
    ["xf_join", "a", "$b"]        transform
    {"method": "GET", "path": ...} resource (asynchronous resolution)

Resolution is incremental: values that cannot be computed yet stay
UNRESOLVED and are picked up by the next call.
"""

from .api import resolve, resolve_async, resolve_at, resolve_at_async
from .engine import (
    UNRESOLVED,
    CircularReferenceError,
    FetchRequest,
    HttpResourceFetcher,
    InvalidPathError,
    ReferenceDepthExceededError,
    ResolverError,
    TransformArityError,
    UnknownTransformError,
    extend,
    is_fully_resolved,
    to_plain_object,
)
from .settings import ResolverSettings

__version__ = "0.1.0"

__all__ = [
    "UNRESOLVED",
    "resolve",
    "resolve_at",
    "resolve_async",
    "resolve_at_async",
    "to_plain_object",
    "is_fully_resolved",
    "extend",
    "FetchRequest",
    "HttpResourceFetcher",
    "ResolverSettings",
    "ResolverError",
    "InvalidPathError",
    "TransformArityError",
    "UnknownTransformError",
    "CircularReferenceError",
    "ReferenceDepthExceededError",
]
