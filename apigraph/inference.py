"""Infer a target type from a schema node.

``infer_type`` never fails. Shapes that are not modeled (objects, enums,
unresolvable compositions) degrade to ``String``, most of them tagged with
the ``coerceToString`` strategy so the generated client stringifies them.

Rules are tried in order and the first one that returns a type wins:

  absent schema          -> Void
  string                 -> String
  number / integer       -> Int
  boolean                -> Boolean
  array                  -> List<infer(items)>
  object                 -> String + coerceToString
  enum                   -> String
  oneOf / allOf / anyOf  -> infer(first non-array branch)
  recursive schema       -> String + coerceToString
  anything else          -> String + coerceToString
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Optional

from .models import (
    BOOLEAN,
    COERCE_ITEMS_TO_STRING,
    COERCE_TO_STRING,
    INT,
    LIST,
    STRING,
    VOID,
    Strategy,
    Typed,
)

if TYPE_CHECKING:
    from .adapter import SchemaNode

logger = logging.getLogger(__name__)

_SCALARS: dict[str, str] = {
    "string": STRING,
    "number": INT,
    "integer": INT,
    "boolean": BOOLEAN,
}


def _coerced_string() -> Typed:
    return Typed(STRING, strategy=Strategy(COERCE_TO_STRING))


def _scalar(schema: SchemaNode, visiting: frozenset[int]) -> Optional[Typed]:
    target = _SCALARS.get(schema.type or "")
    return Typed(target) if target else None


def _array(schema: SchemaNode, visiting: frozenset[int]) -> Optional[Typed]:
    if schema.type != "array":
        return None
    item = infer_type(schema.items, visiting)
    # The item's fallback moves up to the list, it is not kept at both levels
    if item.strategy is not None and item.strategy.kind == COERCE_TO_STRING:
        return Typed(LIST, item.bare(), Strategy(COERCE_ITEMS_TO_STRING))
    return Typed(LIST, item.bare())


def _object(schema: SchemaNode, visiting: frozenset[int]) -> Optional[Typed]:
    if schema.type != "object":
        return None
    logger.warning("Object types are not modeled, using String")
    return _coerced_string()


def _enum(schema: SchemaNode, visiting: frozenset[int]) -> Optional[Typed]:
    if not schema.enum:
        return None
    logger.warning("Enums are not modeled, using String")
    return Typed(STRING)


def _composition(schema: SchemaNode, visiting: frozenset[int]) -> Optional[Typed]:
    branches = schema.one_of or schema.all_of or schema.any_of
    if not branches:
        return None
    # Prefer a scalar/object representative over an array variant
    for branch in branches:
        if branch.type != "array":
            return infer_type(branch, visiting)
    return None


_RULES: tuple[Callable[[SchemaNode, frozenset[int]], Optional[Typed]], ...] = (
    _scalar,
    _array,
    _object,
    _enum,
    _composition,
)


def infer_type(schema: Optional[SchemaNode], _visiting: frozenset[int] = frozenset()) -> Typed:
    """Map a schema node to a target type plus an optional fallback strategy."""
    if schema is None:
        return Typed(VOID)
    if id(schema.inner) in _visiting:
        logger.warning("Recursive schema, using String")
        return _coerced_string()
    visiting = _visiting | {id(schema.inner)}
    for rule in _RULES:
        typed = rule(schema, visiting)
        if typed is not None:
            return typed
    return _coerced_string()
