"""Tests for the type graph synthesizer module."""

import logging

import pytest

from apigraph import models
from apigraph.assembler import Specifics, assemble
from apigraph.synthesizer import TypeRegistry, synthesize

from conftest import json_response


def _fields(mtype):
    return [f.name for f in mtype.fields]


def _spec(user_schema, auth=True):
    spec = {
        "openapi": "3.0.0",
        "paths": {
            "/v1/users/{id}": {"get": {"responses": json_response(user_schema)}},
        },
    }
    if auth:
        spec["components"] = {"securitySchemes": {"b": {"type": "http", "scheme": "bearer"}}}
    return spec


class TestGraphShape:
    """Test the types generated for the fixture document."""

    @pytest.fixture(autouse=True)
    def _schema(self, v3_spec):
        self.program = assemble(v3_spec)
        self.schema = synthesize(self.program)

    def test_type_order(self):
        names = [t.name for t in self.schema.types]
        assert names == ["Root", "User", "Org", "UserCollection", "UserPage"]

    def test_root_configure_action(self):
        root = self.schema.get("Root")
        assert root.events == []
        (configure,) = root.actions
        assert configure.name == "configure"
        assert configure.typed == models.Typed(models.VOID)
        assert configure.params == [models.Param("token", models.Typed(models.STRING))]
        assert configure.strategy.kind == models.CONFIGURE_BEARER_TOKEN

    def test_root_collection_field(self):
        root = self.schema.get("Root")
        (users,) = root.fields
        assert users.name == "users"
        assert users.typed == models.Typed("UserCollection")
        assert users.strategy.kind == models.EMPTY_OBJECT

    def test_collection_one_and_page(self):
        collection = self.schema.get("UserCollection")
        assert _fields(collection) == ["one", "page"]
        one, page = collection.fields
        assert one.typed == models.Typed("User")
        assert one.strategy.operation.kind == models.FETCH_INSTANCE
        assert [p.name for p in one.params] == ["id"]
        assert page.typed == models.Typed("UserPage")
        assert page.strategy.operation.kind == models.LIST_INSTANCES
        assert [(p.name, p.typed.type) for p in page.params] == [("limit", "Int"), ("cursor", "String")]

    def test_page_type(self):
        page = self.schema.get("UserPage")
        items, next_ = page.fields
        assert items.typed == models.Typed(models.LIST, "User")
        assert next_.typed == models.Typed(models.REF, "UserPage")
        assert items.strategy is None and next_.strategy is None

    def test_entity_fields_from_fetch_response(self):
        user = self.schema.get("User")
        assert _fields(user) == ["gref", "id", "name", "tags", "profile", "active"]
        by_name = {f.name: f for f in user.fields}
        assert by_name["id"].typed == models.Typed(models.INT)
        assert by_name["tags"].typed == models.Typed(models.LIST, models.Typed(models.STRING))
        assert by_name["profile"].strategy.kind == models.COERCE_TO_STRING
        assert by_name["active"].strategy is None

    def test_primary_hint(self):
        user = self.schema.get("User")
        assert user.find_field("name").hints == {"primary": True}
        assert user.find_field("id").hints is None

    def test_entity_without_fetch_or_list_has_no_collection(self):
        assert self.schema.get("OrgCollection") is None
        assert _fields(self.schema.get("Org")) == ["gref"]

    def test_every_entity_has_one_self_reference(self):
        for name in self.program.types:
            grefs = [f for f in self.schema.get(name).fields if f.name == "gref"]
            assert len(grefs) == 1
            assert grefs[0].typed == models.Typed(models.REF, name)
            assert grefs[0].strategy.kind == models.GET_SELF_GREF

    def test_at_most_one_strategy_per_member(self):
        for mtype in self.schema.types:
            for member in mtype.members():
                assert member.strategy is None or isinstance(member.strategy, models.Strategy)


class TestMerge:
    """Test merging of response properties into entity fields."""

    def test_identical_duplicates_not_repeated(self):
        schema = synthesize(assemble(_spec({"anyOf": [
            {"properties": {"id": {"type": "integer"}, "title": {"type": "string"}}},
            {"properties": {"id": {"type": "integer"}}},
        ]})))
        assert _fields(schema.get("User")) == ["gref", "id", "title"]

    def test_conflict_keeps_first_inference(self, caplog):
        with caplog.at_level(logging.WARNING):
            schema = synthesize(assemble(_spec({"oneOf": [
                {"properties": {"id": {"type": "integer"}}},
                {"properties": {"id": {"type": "string"}}},
            ]})))
        user = schema.get("User")
        assert _fields(user) == ["gref", "id"]
        assert user.find_field("id").typed == models.Typed(models.INT)
        assert "Two possible field types mismatch id on User" in caplog.text

    def test_response_gref_property_does_not_replace_self_reference(self):
        schema = synthesize(assemble(_spec({"properties": {"gref": {"type": "string"}}})))
        gref = schema.get("User").find_field("gref")
        assert gref.typed == models.Typed(models.REF, "User")

    def test_primary_hint_requires_string(self):
        schema = synthesize(assemble(_spec({"properties": {
            "title": {"type": "integer"}, "alias": {"type": "string"},
        }})))
        user = schema.get("User")
        assert user.find_field("title").hints is None
        assert user.find_field("alias").hints == {"primary": True}

    def test_unresolved_property_ref_skips_rest(self, caplog):
        with caplog.at_level(logging.WARNING):
            schema = synthesize(assemble(_spec({"properties": {
                "id": {"type": "integer"}, "self": {"$ref": "#/cycle"}, "name": {"type": "string"},
            }})))
        assert _fields(schema.get("User")) == ["gref", "id"]
        assert "remaining properties skipped" in caplog.text

    def test_boolean_property_schema(self):
        schema = synthesize(assemble(_spec({"properties": {
            "id": {"type": "integer"}, "extra": True, "name": {"type": "string"},
        }})))
        user = schema.get("User")
        assert _fields(user) == ["gref", "id", "extra", "name"]
        assert user.find_field("extra").typed == models.Typed(models.STRING)
        assert user.find_field("extra").strategy.kind == models.COERCE_TO_STRING

    def test_response_schema_hook(self):
        spec = _spec({"properties": {"user": {"properties": {"email": {"type": "string"}}}}})
        specifics = Specifics(
            response_schema=lambda op: next(op.response_schema.combined_properties()).schema,
        )
        schema = synthesize(assemble(spec, specifics), specifics)
        assert _fields(schema.get("User")) == ["gref", "email"]


class TestAuth:
    """Test root actions per auth scheme."""

    def test_unknown_auth_has_no_actions(self, caplog):
        with caplog.at_level(logging.WARNING):
            schema = synthesize(assemble(_spec({"type": "object"}, auth=False)))
        assert schema.get("Root").actions == []
        assert "Non bearer auth schemes are not supported yet" in caplog.text


class TestRegistry:
    """Test the name -> type arena."""

    def test_get_or_create_is_idempotent(self):
        registry = TypeRegistry()
        first = registry.get_or_create("UserPage", [models.Member("items", models.Typed(models.LIST, "User"))])
        second = registry.get_or_create("UserPage")
        assert first is second
        assert _fields(second) == ["items"]

    def test_duplicate_add_rejected(self):
        registry = TypeRegistry()
        registry.add(models.MType("Root"))
        with pytest.raises(ValueError):
            registry.add(models.MType("Root"))

    def test_entity_named_root_is_skipped(self, caplog):
        spec = {"openapi": "3.0.0", "paths": {
            "/v1/roots/{id}": {"get": {"responses": json_response({"type": "object"})}},
        }}
        with caplog.at_level(logging.WARNING):
            schema = synthesize(assemble(spec))
        assert [t.name for t in schema.types] == ["Root"]
        assert "collides with a generated type" in caplog.text


class TestDerivedNameCollisions:
    """Entities named like a derived type keep their own shape."""

    def _schema(self, paths):
        return synthesize(assemble({"openapi": "3.0.0", "paths": paths}))

    def test_entity_named_like_page(self, caplog):
        with caplog.at_level(logging.WARNING):
            schema = self._schema({
                "/v1/users": {"get": {"responses": json_response({"type": "array"})}},
                "/v1/user_pages/{id}": {"get": {"responses": json_response({
                    "properties": {"size": {"type": "integer"}},
                })}},
            })
        assert _fields(schema.get("UserPage")) == ["gref", "size"]
        assert schema.get("UserCollection").find_field("page") is None
        assert "Type UserPage collides with an entity type" in caplog.text

    def test_entity_named_like_collection(self, caplog):
        with caplog.at_level(logging.WARNING):
            schema = self._schema({
                "/v1/users/{id}": {"get": {"responses": json_response({
                    "properties": {"id": {"type": "integer"}},
                })}},
                "/v1/user_collections/{id}": {"get": {"responses": json_response({"type": "object"})}},
            })
        assert _fields(schema.get("UserCollection")) == ["gref"]
        assert _fields(schema.get("User")) == ["gref", "id"]
        assert schema.get("Root").find_field("users") is None
        assert "Type UserCollection collides with an entity type" in caplog.text


class TestDeterminism:
    """Assembly plus synthesis is repeatable."""

    def test_same_document_same_schema(self, v3_spec, v2_spec):
        for spec in (v3_spec, v2_spec):
            first = synthesize(assemble(spec)).to_dict()
            second = synthesize(assemble(spec)).to_dict()
            assert first == second


class TestSerialization:
    """Test the serializable form of the schema graph."""

    def test_to_dict(self, v3_spec):
        data = synthesize(assemble(v3_spec)).to_dict()
        root = data["types"][0]
        assert root["actions"][0] == {
            "name": "configure",
            "type": "Void",
            "params": [{"name": "token", "type": "String"}],
            "strategy": {"kind": "configureBearerToken"},
        }
        collection = next(t for t in data["types"] if t["name"] == "UserCollection")
        assert collection["fields"][0]["strategy"] == {
            "kind": "operation",
            "operation": {"kind": "fetchInstance", "method": "get", "path": "/v1/users/{id}"},
        }
        user = next(t for t in data["types"] if t["name"] == "User")
        tags = next(f for f in user["fields"] if f["name"] == "tags")
        assert tags == {"name": "tags", "type": "List", "ofType": {"type": "String"}}

    def test_v2_document(self, v2_spec):
        schema = synthesize(assemble(v2_spec))
        pet = schema.get("Pet")
        assert _fields(pet) == ["gref", "id", "title", "status", "owner"]
        assert pet.find_field("title").hints == {"primary": True}
        assert pet.find_field("owner").strategy.kind == models.COERCE_TO_STRING
