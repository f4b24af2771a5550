"""Build a ProgramDefinition from a dereferenced API description.

Walks every (path, method) pair in document order, groups the classified
operations under an entity name derived from the path, and derives the base
URL and auth scheme once for the whole document.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from . import models
from .adapter import DocumentNode, SchemaNode, document_node
from .classifier import HTTP_METHODS, classify
from .naming import type_name_from_path

logger = logging.getLogger(__name__)


def _never_ignore(path: str) -> bool:
    return False


def _own_response_schema(operation: models.Operation) -> Optional[SchemaNode]:
    return operation.response_schema


@dataclass(frozen=True)
class Specifics:
    """Per-API hooks.

    type_name_from_path: ``/v13/deployments/{idOrUrl}`` -> ``Deployment``,
        or None to skip the path.
    should_ignore_path: True to drop a path before anything else looks at it.
    response_schema: the schema describing the entity returned by an
        operation. Some APIs wrap payloads like ``{"user": {...}}``, and this
        hook can unwrap them.
    """

    type_name_from_path: Callable[[str], Optional[str]] = type_name_from_path
    should_ignore_path: Callable[[str], bool] = _never_ignore
    response_schema: Callable[[models.Operation], Optional[SchemaNode]] = _own_response_schema


DEFAULT_SPECIFICS = Specifics()


def assemble(
    spec: dict[str, Any],
    specifics: Specifics = DEFAULT_SPECIFICS,
) -> models.ProgramDefinition:
    """Classify every operation of the spec and group them by entity type."""
    document = document_node(spec)
    return _Assembler(document, specifics).run()


class _Assembler:
    def __init__(self, document: DocumentNode, specifics: Specifics) -> None:
        self.document = document
        self.specifics = specifics
        self.types: dict[str, models.TypeDef] = {}
        self.operations: list[models.Operation] = []
        self.unrecognized: list[tuple[str, str]] = []
        self.total = 0

    def run(self) -> models.ProgramDefinition:
        for path, path_item in self.document.paths().items():
            self._visit_path(path, path_item)

        for method, path in self.unrecognized:
            logger.warning("? %s %s", method, path)
        report = models.AssemblyReport(self.total, tuple(self.unrecognized))
        logger.info("Recognized %d of %d operations", report.recognized, report.total)

        return models.ProgramDefinition(
            types=self.types,
            operations=self.operations,
            base_url=self.document.base_url(),
            auth_scheme=self.document.auth_scheme(),
            report=report,
        )

    def _visit_path(self, path: str, path_item: Optional[dict[str, Any]]) -> None:
        if self.specifics.should_ignore_path(path):
            return
        type_name = self.specifics.type_name_from_path(path)
        if not type_name:
            logger.warning("No type name could be determined for path %s", path)
            return
        methods = [m for m in (path_item or {}) if m.lower() in HTTP_METHODS]
        if not methods:
            logger.warning("No methods for path %s", path)
            return

        typedef = self.types.get(type_name)
        if typedef is None:
            typedef = self.types[type_name] = models.TypeDef(type_name)

        shared_parameters = path_item.get("parameters") or []
        for method in methods:
            self.total += 1
            operation = classify(method, path, path_item[method] or {}, self.document, shared_parameters)
            if operation is None:
                self.unrecognized.append((method.upper(), path))
                continue
            typedef.operations.append(operation)
            self.operations.append(operation)
