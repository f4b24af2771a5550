"""Render templates and write generated output.

Takes the schema graph and program definition and produces client.py plus
the apigraph.json schema artifact.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import jinja2

from . import models
from .context_builder import build_context

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
DEFAULT_OUTPUT_DIR = Path("generated")

CLIENT_FILENAME = "client.py"
SCHEMA_FILENAME = "apigraph.json"


def _environment() -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["pyrepr"] = repr
    return env


def render_client(schema: models.Schema, program: models.ProgramDefinition) -> str:
    """Render the client bindings module source."""
    template = _environment().get_template("client.py.j2")
    return template.render(**build_context(schema, program))


def schema_document(schema: models.Schema) -> dict[str, Any]:
    """The persisted configuration artifact."""
    return {"dependencies": {"http": "http:"}, "schema": schema.to_dict()}


def write_outputs(
    schema: models.Schema,
    program: models.ProgramDefinition,
    output_dir: Path = DEFAULT_OUTPUT_DIR,
) -> tuple[Path, Path]:
    """Write client.py and apigraph.json into output_dir."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    schema_path = output_dir / SCHEMA_FILENAME
    schema_path.write_text(json.dumps(schema_document(schema), indent=2) + "\n")

    client_path = output_dir / CLIENT_FILENAME
    client_path.write_text(render_client(schema, program))

    logger.info("Generated %s (%d types) and %s", client_path, len(schema.types), schema_path)
    return client_path, schema_path
