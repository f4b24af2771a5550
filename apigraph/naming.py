"""Path-segment and identifier helpers.

Entity names come from path shape:
  /v1/users             -> User
  /v1/users/{id}        -> User
  /v13/deployments/{id} -> Deployment
  /v1/categories        -> Category

Collection fields on Root use the lower-camel plural of the entity name:
  User     -> users
  Category -> categories
  ApiKey   -> apiKeys
"""

from __future__ import annotations

import re
from typing import Optional

# Irregular plural/singular pairs
_PLURALS: dict[str, str] = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "goose": "geese",
    "foot": "feet",
    "tooth": "teeth",
    "index": "indices",
    "matrix": "matrices",
    "vertex": "vertices",
    "status": "statuses",
    "alias": "aliases",
    "bus": "buses",
    "virus": "viruses",
    "campus": "campuses",
    "bonus": "bonuses",
    "address": "addresses",
    "analysis": "analyses",
    "leaf": "leaves",
    "life": "lives",
}

_SINGULARS: dict[str, str] = {v: k for k, v in _PLURALS.items()}

# Words whose singular and plural are the same
_UNCOUNTABLE = {
    "data", "metadata", "information", "equipment", "media", "news", "series",
    "species", "settings", "feedback", "software", "analytics", "billing",
}

_PLACEHOLDER = re.compile(r"^\{(.+)\}$")


def _match_case(original: str, word: str) -> str:
    if original[:1].isupper():
        return word[:1].upper() + word[1:]
    return word


def _split_last_word(word: str) -> tuple[str, str]:
    """Split off the last camelCase/snake_case word so inflection only touches it."""
    match = re.search(r"([A-Z]?[a-z0-9]+|[A-Z]+)$", word)
    if not match:
        return "", word
    return word[: match.start()], match.group(1)


def pluralize(word: str) -> str:
    """Return the plural form of a name."""
    head, last = _split_last_word(word)
    lower = last.lower()
    if lower in _UNCOUNTABLE or lower in _SINGULARS:
        return word
    if lower in _PLURALS:
        return head + _match_case(last, _PLURALS[lower])
    if re.search(r"[^aeiou]y$", lower):
        return head + last[:-1] + "ies"
    if re.search(r"(s|x|z|ch|sh)$", lower):
        return head + last + "es"
    return head + last + "s"


def singularize(word: str) -> str:
    """Return the singular form of a name."""
    head, last = _split_last_word(word)
    lower = last.lower()
    if lower in _UNCOUNTABLE or lower in _PLURALS:
        return word
    if lower in _SINGULARS:
        return head + _match_case(last, _SINGULARS[lower])
    if lower.endswith("ies") and len(lower) > 3:
        return head + last[:-3] + "y"
    if re.search(r"(ss|x|z|ch|sh)es$", lower):
        return head + last[:-2]
    if lower.endswith("ses") and len(lower) > 3:
        return head + last[:-1]
    if lower.endswith("s") and not lower.endswith("ss"):
        return head + last[:-1]
    return word


def _words(name: str) -> list[str]:
    """Split snake_case, kebab-case and camelCase into words."""
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    s2 = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s1)
    return [w for w in re.split(r"[^A-Za-z0-9]+", s2) if w]


def capitalize(name: str) -> str:
    """Turn a path segment into a type name: ``api_keys`` -> ``ApiKeys``."""
    return "".join(w[:1].upper() + w[1:] for w in _words(name))


def camelize(name: str) -> str:
    """Lower-camel form: ``ApiKeys`` -> ``apiKeys``."""
    words = _words(name)
    if not words:
        return name
    first = words[0].lower()
    return first + "".join(w[:1].upper() + w[1:] for w in words[1:])


def collection_field_name(type_name: str) -> str:
    """Root field exposing the collection of an entity: ``User`` -> ``users``."""
    return camelize(pluralize(type_name))


def split_path(path: str) -> list[str]:
    """Split a path on ``/`` and drop the leading empty segment."""
    parts = path.split("/")
    if parts and parts[0] == "":
        parts = parts[1:]
    return parts


def placeholder_name(segment: Optional[str]) -> Optional[str]:
    """Return ``id`` for ``{id}``; None for literal segments."""
    if segment is None:
        return None
    match = _PLACEHOLDER.match(segment)
    return match.group(1) if match else None


def is_placeholder(segment: Optional[str]) -> bool:
    return placeholder_name(segment) is not None


def type_name_from_path(path: str) -> Optional[str]:
    """Default rule: singular, capitalized second path segment.

    ``/v1/users/{id}`` -> ``User``. Returns None when there is no usable
    second segment.
    """
    parts = split_path(path)
    if len(parts) < 2 or not parts[1] or is_placeholder(parts[1]):
        return None
    name = capitalize(singularize(parts[1]))
    return name or None
