"""Turn a ProgramDefinition into the schema graph handed to the emitter.

Produces, in order:
- Root, with a ``configure`` action when the API uses bearer tokens
- one entity type per TypeDef, each with a ``gref`` self reference
- ``<Name>Collection`` types hung off Root, exposing ``one`` and ``page``
- ``<Name>Page`` types for entities that can be listed

Entity fields come from the properties of the fetchInstance response. When
two properties share a name the first inference is kept and the mismatch is
logged. Operations other than fetchInstance/listInstances are not woven into
the graph yet.
"""

from __future__ import annotations

import logging
from typing import Optional

from . import models
from .assembler import DEFAULT_SPECIFICS, Specifics
from .errors import UnresolvedRefError
from .inference import infer_type
from .naming import collection_field_name

logger = logging.getLogger(__name__)

ROOT = "Root"

# String fields with these names are shown first by UIs
PRIMARY_FIELD_NAMES = frozenset({"name", "title", "alias"})


class TypeRegistry:
    """Name -> MType arena. Insertion order is output order."""

    def __init__(self) -> None:
        self._types: dict[str, models.MType] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._types

    def get(self, name: str) -> models.MType:
        return self._types[name]

    def add(self, mtype: models.MType) -> models.MType:
        if mtype.name in self._types:
            raise ValueError(f"Type {mtype.name} is already registered")
        self._types[mtype.name] = mtype
        return mtype

    def get_or_create(self, name: str, fields: Optional[list[models.Member]] = None) -> models.MType:
        """Return the named type, registering it with ``fields`` on first use."""
        mtype = self._types.get(name)
        if mtype is None:
            mtype = self.add(models.MType(name, fields=list(fields or [])))
        return mtype

    def types(self) -> list[models.MType]:
        return list(self._types.values())


def add_member(members: list[models.Member], member: models.Member, owner: str) -> models.Member:
    """Append a member unless the name is taken; the first one wins."""
    for existing in members:
        if existing.name == member.name:
            if existing.typed != member.typed:
                logger.warning(
                    "Member %s on %s already exists as %s, ignoring %s",
                    member.name, owner, existing.typed, member.typed,
                )
            return existing
    members.append(member)
    return member


def _params(operation: models.Operation) -> list[models.Param]:
    params = []
    for parameter in operation.parameters:
        try:
            typed = parameter.infer_type().bare()
        except UnresolvedRefError as e:
            logger.warning("%s in param %s, using String", e, parameter.name)
            typed = models.Typed(models.STRING)
        params.append(models.Param(parameter.name, typed, parameter.description))
    return params


def _root_actions(auth_scheme: str) -> list[models.Member]:
    actions: list[models.Member] = []
    if auth_scheme == models.AUTH_BEARER:
        actions.append(models.Member(
            name="configure",
            typed=models.Typed(models.VOID),
            params=[models.Param("token", models.Typed(models.STRING))],
            strategy=models.Strategy(models.CONFIGURE_BEARER_TOKEN),
        ))
    else:
        logger.warning("Non bearer auth schemes are not supported yet (%s)", auth_scheme)
    return actions


class Synthesizer:
    def __init__(self, program: models.ProgramDefinition, specifics: Specifics = DEFAULT_SPECIFICS) -> None:
        self.program = program
        self.specifics = specifics
        self.registry = TypeRegistry()
        self.entity_names: set[str] = set()

    def run(self) -> models.Schema:
        self.root = self.registry.add(
            models.MType(ROOT, actions=_root_actions(self.program.auth_scheme)),
        )

        entities = []
        for name in self.program.types:
            if name in self.registry:
                logger.warning("Entity type %s collides with a generated type, skipping", name)
                continue
            self.registry.add(models.MType(name, fields=[models.Member(
                name="gref",
                typed=models.Typed(models.REF, name),
                strategy=models.Strategy(models.GET_SELF_GREF),
            )]))
            self.entity_names.add(name)
            entities.append(self.program.types[name])

        for typedef in entities:
            self._weave(typedef)

        return models.Schema(self.registry.types())

    def _weave(self, typedef: models.TypeDef) -> None:
        fetch_one = typedef.first(models.FETCH_INSTANCE)
        list_all = typedef.first(models.LIST_INSTANCES)
        if fetch_one is None and list_all is None:
            return

        if fetch_one is not None:
            self._merge_response_fields(typedef.name, fetch_one)

        collection = self._collection_type(typedef.name)
        if collection is None:
            return
        if fetch_one is not None:
            add_member(collection.fields, models.Member(
                name="one",
                typed=models.Typed(typedef.name),
                params=_params(fetch_one),
                strategy=models.Strategy(models.OPERATION, fetch_one),
            ), collection.name)

        if list_all is not None:
            page = self._page_type(typedef.name)
            if page is not None and collection.find_field("page") is None:
                collection.fields.append(models.Member(
                    name="page",
                    typed=models.Typed(page.name),
                    params=_params(list_all),
                    strategy=models.Strategy(models.OPERATION, list_all),
                ))

    def _collection_type(self, item_type: str) -> Optional[models.MType]:
        name = f"{item_type}Collection"
        if self._is_entity(name):
            return None
        field_name = collection_field_name(item_type)
        if self.root.find_field(field_name) is None:
            self.root.fields.append(models.Member(
                name=field_name,
                typed=models.Typed(name),
                strategy=models.Strategy(models.EMPTY_OBJECT),
            ))
        return self.registry.get_or_create(name)

    def _page_type(self, item_type: str) -> Optional[models.MType]:
        name = f"{item_type}Page"
        if self._is_entity(name):
            return None
        return self.registry.get_or_create(name, fields=[
            models.Member("items", models.Typed(models.LIST, item_type)),
            models.Member("next", models.Typed(models.REF, name)),
        ])

    def _is_entity(self, name: str) -> bool:
        """Derived types never take over an entity of the same name."""
        if name in self.entity_names:
            logger.warning("Type %s collides with an entity type, skipping", name)
            return True
        return False

    def _merge_response_fields(self, type_name: str, operation: models.Operation) -> None:
        schema = self.specifics.response_schema(operation)
        if schema is None:
            return
        mtype = self.registry.get(type_name)
        try:
            for prop in schema.combined_properties():
                logger.debug("PROP: %s.%s", type_name, prop.name)
                self._merge_field(mtype, prop.name, infer_type(prop.schema))
        except UnresolvedRefError as e:
            logger.warning("%s in response of %s, remaining properties skipped", e, operation.path)

    def _merge_field(self, mtype: models.MType, name: str, inferred: models.Typed) -> None:
        existing = mtype.find_member(name)
        if existing is not None:
            if existing.typed != inferred:
                logger.warning(
                    "Two possible field types mismatch %s on %s, using: %s vs %s",
                    name, mtype.name, existing.typed, inferred,
                )
            return
        field = models.Member(name, inferred.bare(), strategy=inferred.strategy)
        if inferred.type == models.STRING and name in PRIMARY_FIELD_NAMES:
            field.hints = {"primary": True}
        mtype.fields.append(field)


def synthesize(
    program: models.ProgramDefinition,
    specifics: Specifics = DEFAULT_SPECIFICS,
) -> models.Schema:
    """Build the schema graph for a program definition."""
    return Synthesizer(program, specifics).run()
