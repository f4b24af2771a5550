"""Turn an API path into Python f-string source.

  /v1/users/{id}            -> f"v1/users/{args['id']}"
  /v1/users/{id}/posts/{n}  -> f"v1/users/{args['id']}/posts/{args['n']}"
  /v1/status                -> f"v1/status"
"""

from __future__ import annotations

import re

_PLACEHOLDER = re.compile(r"(\{[^}]+\})")


def _escape_literal(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("{", "{{")
        .replace("}", "}}")
    )


def path_template(path: str, args: str = "args") -> str:
    """Return f-string source substituting each ``{name}`` with ``args[name]``."""
    pieces = []
    for chunk in _PLACEHOLDER.split(path.lstrip("/")):
        if not chunk:
            continue
        if _PLACEHOLDER.fullmatch(chunk):
            pieces.append("{%s[%r]}" % (args, chunk[1:-1]))
        else:
            pieces.append(_escape_literal(chunk))
    return 'f"%s"' % "".join(pieces)


def placeholders(path: str) -> list[str]:
    """Names of the ``{name}`` placeholders in a path, in order."""
    return [chunk[1:-1] for chunk in _PLACEHOLDER.findall(path)]
