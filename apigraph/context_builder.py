"""Build Jinja2 template context from the schema graph.

Maps every member that carries a strategy to a resolver entry the client
template knows how to render, and assembles the full context dict for
client.py.j2.
"""

from __future__ import annotations

import keyword
import re
from typing import Any, Optional

from . import models
from .path_template import path_template, placeholders


def py_identifier(name: str) -> str:
    """Sanitize a member name for use as a Python identifier."""
    ident = re.sub(r"\W", "_", name)
    if not ident or ident[0].isdigit():
        ident = f"_{ident}"
    if keyword.iskeyword(ident):
        ident = f"{ident}_"
    return ident


def _operation_resolver(operation: models.Operation) -> Optional[dict[str, Any]]:
    if operation.kind == models.FETCH_INSTANCE:
        template = "fetch_instance"
    elif operation.kind == models.LIST_INSTANCES:
        template = "list_instances"
    else:
        return None
    return {
        "template": template,
        "method": operation.method.upper(),
        "path": operation.path.lstrip("/"),
        "path_expr": path_template(operation.path),
        "path_params": placeholders(operation.path),
    }


def build_resolver(member: models.Member) -> Optional[dict[str, Any]]:
    """Return the template entry for a member, or None if it needs no resolver."""
    strategy = member.strategy
    if strategy is None:
        return None

    if strategy.kind == models.OPERATION:
        resolver = _operation_resolver(strategy.operation)
    elif strategy.kind == models.GET_SELF_GREF:
        resolver = {"template": "get_self_gref", "type_name": member.typed.of_type}
    elif strategy.kind == models.EMPTY_OBJECT:
        resolver = {"template": "empty_object"}
    elif strategy.kind == models.CONFIGURE_BEARER_TOKEN:
        resolver = {"template": "configure_bearer_token"}
    elif strategy.kind == models.COERCE_TO_STRING:
        resolver = {"template": "coerce_to_string"}
    elif strategy.kind == models.COERCE_ITEMS_TO_STRING:
        resolver = {"template": "coerce_items_to_string"}
    else:
        resolver = None

    if resolver is None:
        return None
    resolver["name"] = member.name
    resolver["py_name"] = py_identifier(member.name)
    return resolver


def build_context(schema: models.Schema, program: models.ProgramDefinition) -> dict[str, Any]:
    """Build the full template context for the client module."""
    types = []
    for mtype in schema.types:
        resolvers = []
        for member in mtype.members():
            resolver = build_resolver(member)
            if resolver is not None:
                resolvers.append(resolver)
        if resolvers:
            types.append({"name": mtype.name, "py_name": py_identifier(mtype.name), "resolvers": resolvers})

    return {
        "types": types,
        "type_count": len(types),
        "base_url": program.base_url,
        "auth_scheme": program.auth_scheme,
        "is_bearer": program.auth_scheme == models.AUTH_BEARER,
    }
