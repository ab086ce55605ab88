from __future__ import annotations

import pytest
import yaml

from persona_mcp.catalog import build_catalog
from persona_mcp.catalog.openapi import load_openapi_specs, specs_from_document, tool_name_from_operation
from persona_mcp.envelope import encode
from persona_mcp.errors import ConfigurationError


DOCUMENT = {
    "openapi": "3.0.0",
    "paths": {
        "/accounts": {
            "get": {
                "operationId": "list-all-accounts",
                "summary": "List all Accounts",
                "parameters": [
                    {"name": "page[size]", "in": "query", "schema": {"type": "integer"}},
                    {"name": "filter[reference-id]", "in": "query", "schema": {"type": "string"}},
                ],
            },
            "post": {
                "operationId": "create-an-account",
                "requestBody": {"$ref": "#/components/requestBodies/AccountCreate"},
                "parameters": [{"name": "Idempotency-Key", "in": "header", "schema": {"type": "string"}}],
            },
        },
        "/accounts/{account-id}": {
            "parameters": [{"name": "account-id", "in": "path", "required": True, "schema": {"type": "string"}}],
            "patch": {
                "operationId": "update-an-account",
                "requestBody": {
                    "content": {
                        "application/json": {
                            "schema": {
                                "properties": {
                                    "data": {
                                        "properties": {
                                            "attributes": {
                                                "properties": {"email-address": {"type": "string"}},
                                            }
                                        }
                                    }
                                }
                            }
                        }
                    }
                },
            },
        },
        "/accounts/{account-id}/add-tag": {
            "post": {
                "operationId": "account-add-tag",
                "parameters": [{"name": "account-id", "in": "path", "required": True}],
                "requestBody": {
                    "content": {
                        "application/json": {
                            "schema": {
                                "properties": {
                                    "meta": {
                                        "properties": {"tag-name": {"type": "string"}},
                                        "required": ["tag-name"],
                                    }
                                }
                            }
                        }
                    }
                },
            }
        },
        "/v1/things": {"get": {"operationId": "list-things-v1"}},
    },
    "components": {
        "requestBodies": {
            "AccountCreate": {
                "content": {
                    "application/json": {
                        "schema": {
                            "properties": {
                                "data": {
                                    "properties": {
                                        "attributes": {
                                            "properties": {"reference-id": {"type": "string"}},
                                            "required": ["reference-id"],
                                        }
                                    }
                                }
                            }
                        }
                    }
                }
            }
        }
    },
}


@pytest.mark.parametrize(
    "operation_id, expected",
    [
        ("list-all-accounts", "account_list"),
        ("list-all-inquiries", "inquiry_list"),
        ("create-an-inquiry", "inquiry_create"),
        ("create-a-case", "case_create"),
        ("retrieve-an-account", "account_retrieve"),
        ("update-an-inquiry", "inquiry_update"),
        ("redact-an-account", "account_redact"),
        ("inquiry-approve", "inquiry_approve"),
    ],
)
def test_tool_name_from_operation(operation_id: str, expected: str) -> None:
    assert tool_name_from_operation(operation_id) == expected


def test_specs_from_document() -> None:
    specs = {spec.name: spec for spec in specs_from_document(DOCUMENT)}

    assert set(specs) == {"account_list", "account_create", "account_update", "account_add_tag"}

    listing = specs["account_list"]
    assert listing.method == "GET"
    assert listing.body_style == "none"
    assert listing.query_params == {"page[size]": "page[size]", "filter[reference-id]": "filter[reference-id]"}

    create = specs["account_create"]
    assert create.header_params == {"idempotencyKey": "Idempotency-Key"}
    assert create.input_schema["required"] == ["referenceId"]

    update = specs["account_update"]
    assert update.path == "/accounts/{accountId}"
    assert update.path_params == ("accountId",)
    assert "emailAddress" in update.input_schema["properties"]

    tag = specs["account_add_tag"]
    assert tag.body_style == "meta"
    assert tag.input_schema["required"] == ["accountId", "tagName"]


def test_operation_with_digit_name_is_skipped() -> None:
    names = {spec.name for spec in specs_from_document(DOCUMENT)}
    assert "list_things_v" not in names
    assert not any(name.startswith("list_things") for name in names)


def test_generated_spec_drives_encode(tmp_path) -> None:
    path = tmp_path / "openapi.yaml"
    path.write_text(yaml.safe_dump(DOCUMENT), encoding="utf-8")
    catalog = build_catalog(str(path))

    request = encode("account_add_tag", {"accountId": "act_1", "tagName": "vip"}, catalog)
    assert request.path == "/accounts/act_1/add-tag"
    assert request.body == {"meta": {"tagName": "vip"}}
    # builtin tools not in the document remain available
    assert catalog.get("inquiry_create") is not None


def test_missing_document(tmp_path) -> None:
    with pytest.raises(ConfigurationError):
        load_openapi_specs(tmp_path / "missing.yaml")


def test_document_without_paths(tmp_path) -> None:
    path = tmp_path / "openapi.yaml"
    path.write_text("openapi: 3.0.0\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_openapi_specs(path)
