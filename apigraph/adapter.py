"""Version-independent views over Swagger 2 and OpenAPI 3 nodes.

Downstream code only sees ``SchemaNode`` and ``ParameterNode``. There are
exactly two implementations of each, one per spec version, and nothing
outside this module branches on the version.

Handles:
- schema accessors (type, items, enum, oneOf/allOf/anyOf)
- flattening of polymorphic compositions into one property stream
- parameters declared inline (Swagger 2) or through a schema
- fail-fast on ``$ref`` nodes that survived dereferencing
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterator, NamedTuple, Optional

from . import models
from .errors import UnresolvedRefError
from .inference import infer_type
from .loader import OPENAPI_3, detect_version

logger = logging.getLogger(__name__)


def noref(node: Any) -> dict[str, Any]:
    """Return the node, raising if it is still a reference.

    Anything that is not a mapping (None, or a boolean schema like ``true``)
    reads as the empty schema.
    """
    if not isinstance(node, dict):
        return {}
    if "$ref" in node:
        raise UnresolvedRefError(str(node["$ref"]))
    return node


class Property(NamedTuple):
    name: str
    schema: SchemaNode


class SchemaNode(ABC):
    """A JSON-Schema fragment seen through a version-independent interface."""

    def __init__(self, inner: dict[str, Any]) -> None:
        self.inner = noref(inner)

    @classmethod
    def _wrap(cls, node: Any) -> SchemaNode:
        return cls(noref(node))

    @property
    def type(self) -> Optional[str]:
        value = self.inner.get("type")
        # OpenAPI 3.1 allows a list like ["string", "null"]
        if isinstance(value, list):
            non_null = [t for t in value if t != "null"]
            return non_null[0] if non_null else None
        return value

    @property
    def items(self) -> Optional[SchemaNode]:
        items = self.inner.get("items")
        if isinstance(items, dict) and items:
            return self._wrap(items)
        return None

    @property
    def enum(self) -> Optional[list[Any]]:
        return self.inner.get("enum")

    @property
    @abstractmethod
    def one_of(self) -> Optional[list[SchemaNode]]:
        ...

    @property
    def all_of(self) -> Optional[list[SchemaNode]]:
        return self._branches("allOf")

    @property
    @abstractmethod
    def any_of(self) -> Optional[list[SchemaNode]]:
        ...

    def _branches(self, key: str) -> Optional[list[SchemaNode]]:
        branches = self.inner.get(key)
        if not branches:
            return None
        return [self._wrap(branch) for branch in branches]

    def combined_properties(self, _visiting: frozenset[int] = frozenset()) -> Iterator[Property]:
        """Yield (name, schema) for every property, flattening compositions.

        A plain object yields its declared properties. A composition yields
        the union of its branches' properties, in branch order. Same-named
        properties from different branches are all yielded; reconciling them
        is the caller's job.
        """
        # A composition that refers back to itself is walked once
        if id(self.inner) in _visiting:
            return
        if "properties" in self.inner:
            for name, prop in (self.inner.get("properties") or {}).items():
                yield Property(name, self._wrap(prop))
            return
        visiting = _visiting | {id(self.inner)}
        for key in ("anyOf", "allOf", "oneOf"):
            if key in self.inner:
                for branch in self._branches(key) or []:
                    yield from branch.combined_properties(visiting)
                return

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.inner!r})"


class V3Schema(SchemaNode):
    """OpenAPI 3 schema object."""

    @property
    def one_of(self) -> Optional[list[SchemaNode]]:
        return self._branches("oneOf")

    @property
    def any_of(self) -> Optional[list[SchemaNode]]:
        return self._branches("anyOf")


class V2Schema(SchemaNode):
    """Swagger 2 schema object. Swagger 2 has no oneOf/anyOf."""

    @property
    def one_of(self) -> Optional[list[SchemaNode]]:
        return None

    @property
    def any_of(self) -> Optional[list[SchemaNode]]:
        return None

    def combined_properties(self, _visiting: frozenset[int] = frozenset()) -> Iterator[Property]:
        if id(self.inner) in _visiting:
            return
        if "properties" in self.inner:
            yield from super().combined_properties(_visiting)
            return
        for branch in self.all_of or []:
            yield from branch.combined_properties(_visiting | {id(self.inner)})


class ParameterNode(ABC):
    """A request parameter seen through a version-independent interface."""

    def __init__(self, inner: dict[str, Any]) -> None:
        self.inner = noref(inner)

    @property
    def name(self) -> str:
        return self.inner.get("name", "")

    @property
    def description(self) -> Optional[str]:
        return self.inner.get("description")

    @property
    def location(self) -> str:
        return self.inner.get("in", "query")

    @property
    @abstractmethod
    def schema(self) -> Optional[SchemaNode]:
        ...

    def infer_type(self) -> models.Typed:
        """Infer the parameter's target type; String when nothing is declared."""
        schema = self.schema
        if schema is None:
            logger.warning("Param has no schema: %s", self.name)
            return models.Typed(models.STRING)
        return infer_type(schema)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, in={self.location!r})"


class V3Parameter(ParameterNode):
    @property
    def schema(self) -> Optional[SchemaNode]:
        schema = self.inner.get("schema")
        if not schema:
            return None
        return V3Schema(schema)


class V2Parameter(ParameterNode):
    """Swagger 2 parameter: body params carry a schema, others are inline."""

    @property
    def schema(self) -> Optional[SchemaNode]:
        if self.location == "body":
            schema = self.inner.get("schema")
            return V2Schema(schema) if schema else None
        if "type" not in self.inner:
            return None
        inline = {
            key: self.inner[key]
            for key in ("type", "items", "enum", "format")
            if key in self.inner
        }
        return V2Schema(inline)


def merge_parameters(
    path_level: list[dict[str, Any]], operation_level: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Combine path-item and operation parameters.

    Operation parameters override path parameters with the same (name, in).
    """
    merged: dict[tuple[str, str], dict[str, Any]] = {}
    for param in [*path_level, *operation_level]:
        param = noref(param)
        merged[(param.get("name", ""), param.get("in", ""))] = param
    return list(merged.values())


JSON_MEDIA_TYPE = "application/json"
SUCCESS_STATUSES = ("200", "201", "202")
BASE_URL_PLACEHOLDER = "BASE_URL_HERE"


class DocumentNode(ABC):
    """Document-level differences between Swagger 2 and OpenAPI 3."""

    schema_class: type[SchemaNode]
    parameter_class: type[ParameterNode]

    def __init__(self, spec: dict[str, Any]) -> None:
        self.spec = spec

    def schema(self, node: Any) -> SchemaNode:
        return self.schema_class(noref(node))

    def parameter(self, node: Any) -> ParameterNode:
        return self.parameter_class(noref(node))

    def paths(self) -> dict[str, Any]:
        return self.spec.get("paths") or {}

    def success_response(self, endpoint: dict[str, Any]) -> Optional[dict[str, Any]]:
        """Return the first 200/201/202 response object, or None."""
        responses = endpoint.get("responses") or {}
        for status in SUCCESS_STATUSES:
            # YAML may load status codes as integers
            response = responses.get(status, responses.get(int(status)))
            if response is not None:
                break
        else:
            logger.warning(
                "No 200/201/202 response for %s", endpoint.get("operationId", "<anonymous>"),
            )
            return None
        if "$ref" in response:
            logger.warning("Not implemented $ref in responses: %s", response["$ref"])
            return None
        return response

    def response_schema(self, endpoint: dict[str, Any]) -> Optional[dict[str, Any]]:
        """Return the raw JSON schema of the success response, or None."""
        response = self.success_response(endpoint)
        if response is None:
            return None
        return self._json_schema(response, endpoint)

    @abstractmethod
    def _json_schema(
        self, response: dict[str, Any], endpoint: dict[str, Any],
    ) -> Optional[dict[str, Any]]:
        ...

    @abstractmethod
    def base_url(self) -> str:
        ...

    @abstractmethod
    def security_schemes(self) -> dict[str, Any]:
        ...

    @abstractmethod
    def is_bearer_scheme(self, scheme: dict[str, Any]) -> bool:
        ...

    def auth_scheme(self) -> str:
        """``bearer`` if any declared security scheme carries a bearer token."""
        for name, scheme in self.security_schemes().items():
            if isinstance(scheme, str):
                scheme = {"type": scheme}
            try:
                scheme = noref(scheme)
            except UnresolvedRefError:
                logger.warning("Skipping unresolved security scheme: %s", name)
                continue
            if self.is_bearer_scheme(scheme):
                return models.AUTH_BEARER
        return models.AUTH_UNKNOWN


class V3Document(DocumentNode):
    schema_class = V3Schema
    parameter_class = V3Parameter

    def _json_schema(
        self, response: dict[str, Any], endpoint: dict[str, Any],
    ) -> Optional[dict[str, Any]]:
        media = (response.get("content") or {}).get(JSON_MEDIA_TYPE)
        if not media:
            return None
        return media.get("schema")

    def base_url(self) -> str:
        servers = self.spec.get("servers") or []
        if servers and servers[0].get("url"):
            return servers[0]["url"]
        return BASE_URL_PLACEHOLDER

    def security_schemes(self) -> dict[str, Any]:
        return (self.spec.get("components") or {}).get("securitySchemes") or {}

    def is_bearer_scheme(self, scheme: dict[str, Any]) -> bool:
        return scheme.get("type") == "http"


class V2Document(DocumentNode):
    schema_class = V2Schema
    parameter_class = V2Parameter

    def _json_schema(
        self, response: dict[str, Any], endpoint: dict[str, Any],
    ) -> Optional[dict[str, Any]]:
        produces = endpoint.get("produces", self.spec.get("produces"))
        if produces and JSON_MEDIA_TYPE not in produces:
            return None
        return response.get("schema")

    def base_url(self) -> str:
        host = self.spec.get("host")
        if not host:
            return BASE_URL_PLACEHOLDER
        schemes = self.spec.get("schemes") or ["https"]
        return f"{schemes[0]}://{host}{self.spec.get('basePath', '')}"

    def security_schemes(self) -> dict[str, Any]:
        return self.spec.get("securityDefinitions") or {}

    def is_bearer_scheme(self, scheme: dict[str, Any]) -> bool:
        return (
            scheme.get("type") == "apiKey"
            and scheme.get("in") == "header"
            and str(scheme.get("name", "")).lower() == "authorization"
        )


def document_node(spec: dict[str, Any]) -> DocumentNode:
    """Pick the document adapter for the spec's version."""
    if detect_version(spec) == OPENAPI_3:
        return V3Document(spec)
    return V2Document(spec)
