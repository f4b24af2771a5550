"""Entry point: python -m apigraph SPEC

Reads an OpenAPI/Swagger document, writes client.py and apigraph.json.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .assembler import assemble
from .codegen import DEFAULT_OUTPUT_DIR, write_outputs
from .errors import UnsupportedSpecError
from .loader import dereference, load_spec
from .logging import configure_logging
from .synthesizer import synthesize

logger = logging.getLogger("apigraph")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="apigraph",
        description="Generate typed client bindings from an OpenAPI v2/v3 description.",
    )
    parser.add_argument("spec", type=Path, help="path to the OpenAPI/Swagger document (JSON or YAML)")
    parser.add_argument(
        "-o", "--output", type=Path, default=DEFAULT_OUTPUT_DIR,
        help=f"output directory (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument("--log-level", default="INFO", help="logging level (default: INFO)")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    try:
        spec = load_spec(args.spec)
        program = assemble(dereference(spec, base_uri=args.spec.resolve().as_uri()))
    except UnsupportedSpecError as e:
        logger.error("%s", e)
        return 1
    schema = synthesize(program)
    write_outputs(schema, program, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
