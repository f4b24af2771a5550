"""Load an OpenAPI/Swagger document and resolve its references.

Reads JSON or YAML from disk, replaces every ``$ref`` with the node it points
to (through jsonref), and detects which spec version the document follows.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit
from urllib.request import urlopen

import jsonref
import yaml

from .errors import UnsupportedSpecError

logger = logging.getLogger(__name__)

SWAGGER_2 = "2"
OPENAPI_3 = "3"

_YAML_SUFFIXES = {".yaml", ".yml"}


def load_spec(path: Path) -> dict[str, Any]:
    """Load an API description from disk."""
    spec_file = Path(path)
    with open(spec_file) as f:
        if spec_file.suffix.lower() in _YAML_SUFFIXES:
            spec = yaml.safe_load(f)
        else:
            spec = json.load(f)
    if not isinstance(spec, dict):
        raise UnsupportedSpecError(f"{spec_file} does not contain a mapping at the top level")
    return spec


def detect_version(spec: dict[str, Any]) -> str:
    """Return SWAGGER_2 or OPENAPI_3 depending on the top-level key."""
    if "swagger" in spec:
        return SWAGGER_2
    if "openapi" in spec:
        return OPENAPI_3
    raise UnsupportedSpecError("Unknown spec version: expected a 'swagger' or 'openapi' key")


def _load_document(uri: str, **kwargs: Any) -> Any:
    """Fetch a document referenced from another file."""
    if Path(urlsplit(uri).path).suffix.lower() in _YAML_SUFFIXES:
        with urlopen(uri) as f:
            return yaml.safe_load(f)
    return jsonref.jsonloader(uri, **kwargs)


def dereference(spec: dict[str, Any], base_uri: str = "") -> dict[str, Any]:
    """Return a copy of the spec with every ``$ref`` replaced by its target.

    Relative refs to other files are resolved against ``base_uri``. Repeated
    refs share one object, and a recursive schema becomes a cyclic structure.
    If any ref cannot be resolved the document is returned with its refs
    in place, and the adapter rejects whatever still carries one.
    """
    try:
        return jsonref.replace_refs(
            spec, base_uri=base_uri, loader=_load_document, proxies=False, lazy_load=False,
        )
    except jsonref.JsonRefError as e:
        logger.warning("%s, leaving refs unresolved", e)
        return copy.deepcopy(spec)
