"""Exceptions raised while turning an API description into a schema graph.

Only UnsupportedSpecError is fatal to a run. The others are caught at the
smallest unit (operation or field) and reported as diagnostics.
"""

from __future__ import annotations


class ApiGraphError(Exception):
    """Base class for all apigraph errors."""


class UnsupportedSpecError(ApiGraphError):
    """The document is neither Swagger 2 nor OpenAPI 3."""


class ClassificationError(ApiGraphError):
    """An operation could not be classified."""


class UnresolvedRefError(ClassificationError):
    """A `$ref` survived dereferencing where a concrete node was expected."""

    def __init__(self, ref: str) -> None:
        super().__init__(f"Unexpected reference: {ref}")
        self.ref = ref
