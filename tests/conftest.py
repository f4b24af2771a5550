"""Shared fixture documents for apigraph tests.

One OpenAPI 3 and one Swagger 2 document describing a small API. Fixtures
hand out fresh, dereferenced copies so tests may mutate them freely.
"""

from __future__ import annotations

import copy
from typing import Any

import pytest

from apigraph.loader import dereference


def json_response(schema: dict[str, Any], status: str = "200") -> dict[str, Any]:
    """An OpenAPI 3 responses object with a JSON body."""
    return {status: {"description": "OK", "content": {"application/json": {"schema": schema}}}}


USER_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": {"type": "integer"},
        "name": {"type": "string"},
        "tags": {"type": "array", "items": {"type": "string"}},
        "profile": {"type": "object"},
        "active": {"type": "boolean"},
    },
}

ID_PARAM: dict[str, Any] = {
    "name": "id", "in": "path", "required": True, "schema": {"type": "string"},
}

# 9 operations, 8 recognized. /health yields no type name and is not counted.
V3_SPEC: dict[str, Any] = {
    "openapi": "3.0.3",
    "info": {"title": "Example", "version": "1.0"},
    "servers": [{"url": "https://api.example.com"}],
    "components": {
        "schemas": {"User": USER_SCHEMA},
        "securitySchemes": {"bearerAuth": {"type": "http", "scheme": "bearer"}},
    },
    "paths": {
        "/health": {
            "get": {"responses": json_response({"type": "string"})},
        },
        "/v1/users": {
            "get": {
                "description": "List users",
                "parameters": [
                    {"name": "limit", "in": "query", "schema": {"type": "integer"}},
                    {"name": "cursor", "in": "query", "schema": {"type": "string"}},
                ],
                "responses": json_response(
                    {"type": "array", "items": {"$ref": "#/components/schemas/User"}},
                ),
            },
            "post": {"responses": json_response({"$ref": "#/components/schemas/User"}, "201")},
        },
        "/v1/users/{id}": {
            "parameters": [ID_PARAM],
            "get": {
                "description": "Fetch a user",
                "responses": json_response({"$ref": "#/components/schemas/User"}),
            },
            "patch": {"responses": json_response({"$ref": "#/components/schemas/User"})},
            "delete": {"responses": json_response({"type": "object"}, "202")},
        },
        "/v1/users/{id}/activate": {
            "parameters": [ID_PARAM],
            "post": {"responses": json_response({"$ref": "#/components/schemas/User"})},
        },
        "/v1/users/{id}/avatar": {
            "parameters": [ID_PARAM],
            "get": {"responses": json_response({"type": "string"})},
        },
        "/v1/users/count": {
            "get": {"responses": json_response({"type": "integer"})},
        },
        "/v1/orgs/{id}": {
            "get": {"responses": {"204": {"description": "No content"}}},
        },
    },
}

PET_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": {"type": "integer"},
        "title": {"type": "string"},
        "status": {"type": "string", "enum": ["available", "sold"]},
        "owner": {"$ref": "#/definitions/Owner"},
    },
}

V2_SPEC: dict[str, Any] = {
    "swagger": "2.0",
    "info": {"title": "Pets", "version": "1.0"},
    "host": "pets.example.com",
    "basePath": "/api",
    "schemes": ["https"],
    "produces": ["application/json"],
    "securityDefinitions": {
        "token": {"type": "apiKey", "in": "header", "name": "Authorization"},
    },
    "definitions": {
        "Pet": PET_SCHEMA,
        "Owner": {"type": "object", "properties": {"name": {"type": "string"}}},
    },
    "paths": {
        "/v2/pets": {
            "get": {
                "parameters": [{"name": "limit", "in": "query", "type": "integer"}],
                "responses": {
                    "200": {
                        "description": "OK",
                        "schema": {"type": "array", "items": {"$ref": "#/definitions/Pet"}},
                    },
                },
            },
        },
        "/v2/pets/{petId}": {
            "get": {
                "parameters": [{"name": "petId", "in": "path", "required": True, "type": "string"}],
                "responses": {"200": {"description": "OK", "schema": {"$ref": "#/definitions/Pet"}}},
            },
        },
    },
}


@pytest.fixture
def v3_spec() -> dict[str, Any]:
    return dereference(copy.deepcopy(V3_SPEC))


@pytest.fixture
def v2_spec() -> dict[str, Any]:
    return dereference(copy.deepcopy(V2_SPEC))
