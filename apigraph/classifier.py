"""Classify an HTTP operation by the shape of its path.

The path is split into segments after the leading ``/``:

  parts[0]  version or prefix         v1
  parts[1]  resource collection       users
  parts[2]  {id} or sub-resource      {id} / count
  parts[3]  nested action or field    activate

Examples:
  GET    /v1/users                 -> listInstances
  GET    /v1/users/{id}            -> fetchInstance
  GET    /v1/users/{id}/avatar     -> fetchInstanceField
  GET    /v1/users/count           -> fetchField
  POST   /v1/users                 -> createInstance
  PATCH  /v1/users/{id}            -> patchInstance
  POST   /v1/users/{id}/activate   -> instanceAction
  POST   /v1/users/{id}            -> generalAction
  DELETE /v1/users/{id}            -> deleteInstance

An ``x-apigraph-operation`` mapping on the operation object overrides the
heuristic entirely.
"""

from __future__ import annotations

import logging
from typing import Any, NamedTuple, Optional

from . import models
from .adapter import DocumentNode, merge_parameters
from .errors import UnresolvedRefError
from .naming import is_placeholder, split_path

logger = logging.getLogger(__name__)

OPERATION_EXTENSION = "x-apigraph-operation"

HTTP_METHODS = ("get", "put", "post", "delete", "patch")

# Extension keys that map onto Operation attributes
_EXTENSION_FIELDS: dict[str, str] = {
    "kind": "kind",
    "method": "method",
    "path": "path",
    "description": "description",
    "idempotent": "idempotent",
    "responseTypeName": "response_type_name",
}


class Rule(NamedTuple):
    methods: frozenset[str]
    length: int
    id_segment: Optional[bool]  # None: parts[2] may or may not be a placeholder
    kind: str

    def matches(self, method: str, parts: list[str]) -> bool:
        if method not in self.methods or len(parts) != self.length:
            return False
        if self.id_segment is None:
            return True
        segment = parts[2] if len(parts) > 2 else None
        return is_placeholder(segment) == self.id_segment


_GET = frozenset({"get"})
_PATCH = frozenset({"patch"})
_WRITE = frozenset({"post", "put"})
_DELETE = frozenset({"delete"})

# Order matters: the first matching rule wins.
# PATCH accepts any 3-segment path, whether or not parts[2] is a placeholder.
RULES: tuple[Rule, ...] = (
    Rule(_GET, 2, None, models.LIST_INSTANCES),
    Rule(_GET, 3, True, models.FETCH_INSTANCE),
    Rule(_GET, 4, True, models.FETCH_INSTANCE_FIELD),
    Rule(_GET, 3, False, models.FETCH_FIELD),
    Rule(_PATCH, 3, None, models.PATCH_INSTANCE),
    Rule(_WRITE, 4, True, models.INSTANCE_ACTION),
    Rule(_WRITE, 3, None, models.GENERAL_ACTION),
    Rule(_WRITE, 2, None, models.CREATE_INSTANCE),
    Rule(_DELETE, 3, True, models.DELETE_INSTANCE),
)


def match_kind(method: str, path: str) -> Optional[str]:
    """Return the operation kind for a method and path, or None."""
    method = method.lower()
    parts = split_path(path)
    for rule in RULES:
        if rule.matches(method, parts):
            return rule.kind
    return None


def _from_extension(common: dict[str, Any], extension: dict[str, Any]) -> Optional[models.Operation]:
    fields = dict(common)
    extras: dict[str, Any] = {}
    for key, value in extension.items():
        if key in _EXTENSION_FIELDS:
            fields[_EXTENSION_FIELDS[key]] = value
        else:
            extras[key] = value
    kind = fields.get("kind")
    if kind not in models.OPERATION_KINDS:
        logger.warning(
            "Invalid %s kind %r on %s %s",
            OPERATION_EXTENSION, kind, common["method"].upper(), common["path"],
        )
        return None
    return models.Operation(extensions=extras, **fields)


def classify(
    method: str,
    path: str,
    endpoint: dict[str, Any],
    document: DocumentNode,
    shared_parameters: Optional[list[dict[str, Any]]] = None,
) -> Optional[models.Operation]:
    """Classify one (method, path) pair; None when it is not recognized.

    An operation without a JSON success response is never recognized, since
    its payload cannot be typed.
    """
    method = method.lower()
    raw_schema = document.response_schema(endpoint)
    if raw_schema is None:
        return None

    try:
        response_schema = document.schema(raw_schema)
        parameters = tuple(
            document.parameter(p)
            for p in merge_parameters(shared_parameters or [], endpoint.get("parameters") or [])
        )
    except UnresolvedRefError as e:
        logger.warning("%s on %s %s", e, method.upper(), path)
        return None

    common: dict[str, Any] = {
        "method": method,
        "path": path,
        "description": endpoint.get("description") or "",
        "parameters": parameters,
        "response_schema": response_schema,
    }

    extension = endpoint.get(OPERATION_EXTENSION)
    if isinstance(extension, dict):
        return _from_extension(common, extension)

    kind = match_kind(method, path)
    if kind is None:
        return None
    if kind in models.IDEMPOTENT_KINDS:
        common["idempotent"] = method == "put"
    return models.Operation(kind=kind, **common)
