"""Intermediate representation shared by the assembler, synthesizer and emitter.

Two layers live here:

- the program definition (Operation, TypeDef, ProgramDefinition), built by
  the assembler from an API description
- the schema graph (Typed, Strategy, Member, MType, Schema), built by the
  synthesizer from a program definition and handed to the emitter

Every record serializes to plain JSON-compatible data through ``to_dict()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Optional, Union

if TYPE_CHECKING:
    from .adapter import ParameterNode, SchemaNode

# Target type vocabulary (entity type names are also valid)
VOID = "Void"
STRING = "String"
INT = "Int"
BOOLEAN = "Boolean"
LIST = "List"
REF = "Ref"

# Operation kinds
LIST_INSTANCES = "listInstances"
FETCH_INSTANCE = "fetchInstance"
FETCH_INSTANCE_FIELD = "fetchInstanceField"
FETCH_FIELD = "fetchField"
CREATE_INSTANCE = "createInstance"
PATCH_INSTANCE = "patchInstance"
INSTANCE_ACTION = "instanceAction"
GENERAL_ACTION = "generalAction"
DELETE_INSTANCE = "deleteInstance"

OPERATION_KINDS = (
    LIST_INSTANCES,
    FETCH_INSTANCE,
    FETCH_INSTANCE_FIELD,
    FETCH_FIELD,
    CREATE_INSTANCE,
    PATCH_INSTANCE,
    INSTANCE_ACTION,
    GENERAL_ACTION,
    DELETE_INSTANCE,
)

# Kinds that carry an idempotent flag
IDEMPOTENT_KINDS = frozenset({CREATE_INSTANCE, INSTANCE_ACTION, GENERAL_ACTION})

# Strategy kinds
EMPTY_OBJECT = "emptyObject"
GET_SELF_GREF = "getSelfGref"
OPERATION = "operation"
CONFIGURE_BEARER_TOKEN = "configureBearerToken"
COERCE_TO_STRING = "coerceToString"
COERCE_ITEMS_TO_STRING = "coerceItemsToString"

STRATEGY_KINDS = (
    EMPTY_OBJECT,
    GET_SELF_GREF,
    OPERATION,
    CONFIGURE_BEARER_TOKEN,
    COERCE_TO_STRING,
    COERCE_ITEMS_TO_STRING,
)

# Auth schemes
AUTH_UNKNOWN = "unknown"
AUTH_BEARER = "bearer"


@dataclass(frozen=True)
class Strategy:
    """How a member's value is produced by the generated client."""

    kind: str
    operation: Optional[Operation] = None

    def __post_init__(self) -> None:
        if self.kind not in STRATEGY_KINDS:
            raise ValueError(f"Unknown strategy kind: {self.kind}")
        if (self.kind == OPERATION) != (self.operation is not None):
            raise ValueError("Only the 'operation' strategy carries an operation")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind}
        if self.operation is not None:
            data["operation"] = self.operation.summary()
        return data


@dataclass(frozen=True)
class Typed:
    """A target type, optionally parameterized (List element, Ref target).

    ``strategy`` is the fallback attached by type inference. It does not take
    part in equality, so two inferences of the same shape compare equal.
    """

    type: str
    of_type: Union[Typed, str, None] = None
    strategy: Optional[Strategy] = field(default=None, compare=False)

    def bare(self) -> Typed:
        """Return this type without its strategy."""
        if self.strategy is None:
            return self
        return replace(self, strategy=None)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type}
        if isinstance(self.of_type, Typed):
            data["ofType"] = self.of_type.to_dict()
        elif self.of_type is not None:
            data["ofType"] = self.of_type
        return data

    def __str__(self) -> str:
        if self.of_type is None:
            return self.type
        return f"{self.type}<{self.of_type}>"


@dataclass(frozen=True)
class Param:
    name: str
    typed: Typed
    description: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = {"name": self.name, **self.typed.to_dict()}
        if self.description:
            data["description"] = self.description
        return data


@dataclass
class Member:
    """A field, action or event of an MType.

    A member without a strategy is a literal value read straight from the
    API payload.
    """

    name: str
    typed: Typed
    params: Optional[list[Param]] = None
    strategy: Optional[Strategy] = None
    hints: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, **self.typed.to_dict()}
        if self.params is not None:
            data["params"] = [p.to_dict() for p in self.params]
        if self.hints:
            data["hints"] = dict(self.hints)
        if self.strategy is not None:
            data["strategy"] = self.strategy.to_dict()
        return data


@dataclass
class MType:
    name: str
    fields: list[Member] = field(default_factory=list)
    actions: list[Member] = field(default_factory=list)
    events: list[Member] = field(default_factory=list)

    def members(self) -> list[Member]:
        return [*self.fields, *self.actions, *self.events]

    def find_member(self, name: str) -> Optional[Member]:
        """Find a member by name across fields, actions and events."""
        for member in self.members():
            if member.name == name:
                return member
        return None

    def find_field(self, name: str) -> Optional[Member]:
        for member in self.fields:
            if member.name == name:
                return member
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "fields": [m.to_dict() for m in self.fields],
            "actions": [m.to_dict() for m in self.actions],
            "events": [m.to_dict() for m in self.events],
        }


@dataclass
class Schema:
    """The schema graph: every generated type, Root first."""

    types: list[MType] = field(default_factory=list)

    def get(self, name: str) -> Optional[MType]:
        for mtype in self.types:
            if mtype.name == name:
                return mtype
        return None

    def to_dict(self) -> dict[str, Any]:
        return {"types": [t.to_dict() for t in self.types]}


@dataclass(frozen=True)
class Operation:
    """A classified HTTP operation."""

    kind: str
    method: str
    path: str
    description: str = ""
    parameters: tuple[ParameterNode, ...] = ()
    response_schema: Optional[SchemaNode] = None
    response_type_name: Optional[str] = None
    idempotent: Optional[bool] = None
    extensions: dict[str, Any] = field(default_factory=dict, compare=False)

    def summary(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind, "method": self.method, "path": self.path}
        if self.idempotent is not None:
            data["idempotent"] = self.idempotent
        return data

    def to_dict(self) -> dict[str, Any]:
        data = self.summary()
        data["description"] = self.description
        data["parameters"] = [p.name for p in self.parameters]
        if self.response_type_name:
            data["responseTypeName"] = self.response_type_name
        return data


@dataclass
class TypeDef:
    """Operations grouped under one entity name, in encounter order."""

    name: str
    operations: list[Operation] = field(default_factory=list)

    def first(self, kind: str) -> Optional[Operation]:
        """Return the first operation of the given kind."""
        for operation in self.operations:
            if operation.kind == kind:
                return operation
        return None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "operations": [op.to_dict() for op in self.operations]}


@dataclass(frozen=True)
class AssemblyReport:
    total: int = 0
    unrecognized: tuple[tuple[str, str], ...] = ()

    @property
    def recognized(self) -> int:
        return self.total - len(self.unrecognized)


@dataclass
class ProgramDefinition:
    types: dict[str, TypeDef]
    operations: list[Operation]
    base_url: str
    auth_scheme: str = AUTH_UNKNOWN
    report: AssemblyReport = field(default_factory=AssemblyReport)

    def to_dict(self) -> dict[str, Any]:
        return {
            "types": {name: t.to_dict() for name, t in self.types.items()},
            "operations": [op.to_dict() for op in self.operations],
            "baseUrl": self.base_url,
            "authScheme": self.auth_scheme,
        }
