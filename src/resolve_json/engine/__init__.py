"""Resolution engine.

Key Components:

- UNRESOLVED: Sentinel for values that are not known yet
- Path algebra: path_from_string, abs_path, is_valid_path
- ExpressionClassifier: Maps document values to an ExpressionType
- Variable / Reference / Transform / Resource: Memoized nodes
- ResolveContext: Immutable context threaded through every resolver call
- resolve / resolve_immediate / resolve_at: Synchronous resolver
- transform: xf_* operator evaluator
- Scheduler / resolve_async / resolve_at_async: asyncio fork/join scheduler
- to_plain_object: Projection of a resolved tree onto plain values
- extend: xf_inherit / xf_extend record merging
- FetchRequest / HttpResourceFetcher: Fetch collaborator interface
- DAGResolver: Wait-for cycle detection via Kahn's algorithm
- LoadResult: Error monad for document loading
"""

from .classifier import ExpressionClassifier, ExpressionType, classify
from .context import AsyncState, ResolveContext, def_context, def_context_async
from .dag import DAGResolver
from .exceptions import (
    CircularReferenceError,
    InvalidPathError,
    ReferenceDepthExceededError,
    ResolverError,
    TransformArityError,
    UnknownTransformError,
)
from .extend import extend
from .fetch import FetchRequest, HttpResourceFetcher
from .load_result import LoadResult
from .loader import load_document_from_file, load_document_from_string, parse_variables
from .nodes import Node, Reference, Resource, Transform, Variable, is_node, is_unresolved
from .paths import abs_path, is_valid_path, path_from_string
from .projection import deref, get_in, is_fully_resolved, to_plain_object
from .resolver import expand_ref, resolve, resolve_at, resolve_immediate
from .scheduler import Scheduler, resolve_async, resolve_at_async
from .sentinel import UNRESOLVED
from .transforms import TRANSFORMS, transform

__all__ = [
    "UNRESOLVED",
    # Path algebra
    "abs_path",
    "expand_ref",
    "is_valid_path",
    "path_from_string",
    # Classification
    "ExpressionClassifier",
    "ExpressionType",
    "classify",
    # Nodes
    "Node",
    "Reference",
    "Resource",
    "Transform",
    "Variable",
    "is_node",
    "is_unresolved",
    # Context
    "AsyncState",
    "ResolveContext",
    "def_context",
    "def_context_async",
    # Resolution
    "resolve",
    "resolve_at",
    "resolve_immediate",
    "resolve_async",
    "resolve_at_async",
    "Scheduler",
    "TRANSFORMS",
    "transform",
    "extend",
    # Projection
    "deref",
    "get_in",
    "is_fully_resolved",
    "to_plain_object",
    # Fetching
    "FetchRequest",
    "HttpResourceFetcher",
    # Loading
    "DAGResolver",
    "LoadResult",
    "load_document_from_file",
    "load_document_from_string",
    "parse_variables",
    # Errors
    "CircularReferenceError",
    "InvalidPathError",
    "ReferenceDepthExceededError",
    "ResolverError",
    "TransformArityError",
    "UnknownTransformError",
]
