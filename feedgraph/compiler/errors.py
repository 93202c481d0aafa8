"""
feedgraph compiler: error taxonomy
===================================
Graph-integrity problems abort a compilation before any document text is
produced. Data-quality problems (bad literals, dangling variable names) are
not errors here: they either pass through verbatim or surface later as an
invalid-document result.
"""

from __future__ import annotations


class CompileError(Exception):
    """Base class for everything the compiler raises."""


class MalformedGraphError(CompileError, ValueError):
    """The graph cannot be compiled at all."""


class RootNotFoundError(MalformedGraphError):
    """The graph has no configuration node."""


class MultipleRootsError(MalformedGraphError):
    """The graph has more than one configuration node."""


class UnknownNodeTypeError(MalformedGraphError):
    """A node reached the dispatch table with no emitter registered for its type."""


class CycleError(MalformedGraphError):
    """A node was reached again while it was still being emitted."""


class UnresolvedReferenceError(MalformedGraphError):
    """A variable names no source or transformation (strict mode only)."""


__all__ = [
    "CompileError",
    "MalformedGraphError",
    "RootNotFoundError",
    "MultipleRootsError",
    "UnknownNodeTypeError",
    "CycleError",
    "UnresolvedReferenceError",
]
