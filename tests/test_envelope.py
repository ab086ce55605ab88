from __future__ import annotations

import pytest

from persona_mcp.catalog import build_catalog
from persona_mcp.envelope import EnvelopeTranslator, decode, encode
from persona_mcp.errors import InvalidToolName, MalformedInvocation, UnparseableResponse, UpstreamError


CATALOG = build_catalog()


def test_inquiry_create_wraps_attributes_once() -> None:
    fields = {"nameFirst": "Jane", "nameLast": "Doe", "birthdate": "1990-01-01"}
    request = encode("inquiry_create", {"inquiryTemplateId": "itmpl_abc", "fields": fields}, CATALOG)

    assert request.method == "POST"
    assert request.path == "/inquiries"
    assert request.body == {"data": {"attributes": {"inquiryTemplateId": "itmpl_abc", "fields": fields}}}
    assert "type" not in request.body["data"]


def test_account_update_routes_identifier_to_path() -> None:
    request = encode("account_update", {"accountId": "acc_123", "email": "new@email.com"}, CATALOG)

    assert request.method == "PATCH"
    assert request.path == "/accounts/acc_123"
    assert request.body == {"data": {"attributes": {"email": "new@email.com"}}}


def test_decode_422_preserves_pointer() -> None:
    body = {
        "errors": [
            {"status": "422", "code": "invalid_parameter", "source": {"pointer": "/data/attributes/email"}}
        ]
    }
    with pytest.raises(UpstreamError) as exc_info:
        decode(422, body)

    errors = exc_info.value.errors
    assert len(errors) == 1
    assert errors[0].status == "422"
    assert errors[0].code == "invalid_parameter"
    assert errors[0].source_pointer == "/data/attributes/email"
    assert exc_info.value.http_status == 422


def test_decode_one_domain_error_per_entry_in_order() -> None:
    body = {
        "errors": [
            {"title": "Bad email", "source": {"pointer": "/data/attributes/email"}},
            {"detail": "Unknown filter", "source": {"parameter": "filter[foo]"}},
            {"status": 400, "code": "bad_request", "meta": {"hint": "x"}},
        ]
    }
    with pytest.raises(UpstreamError) as exc_info:
        decode(400, body)

    errors = exc_info.value.errors
    assert [error.source_pointer for error in errors] == ["/data/attributes/email", None, None]
    assert [error.source_parameter for error in errors] == [None, "filter[foo]", None]
    assert errors[2].status == "400"
    assert errors[2].meta == {"hint": "x"}
    assert all(error.is_actionable for error in errors)
    payload = exc_info.value.to_dict()
    assert payload["error"] == "UPSTREAM_ERROR"
    assert payload["errors"][1]["source"] == {"parameter": "filter[foo]"}


def test_error_without_title_gets_reason_phrase() -> None:
    with pytest.raises(UpstreamError) as exc_info:
        decode(404, {"errors": [{"status": "404"}]})
    assert exc_info.value.errors[0].title == "Not Found"


@pytest.mark.parametrize(
    "params",
    [
        {"inquiryTemplateId": "itmpl_abc", "referenceId": "user-1", "tags": ["vip", "beta"]},
        {"inquiryTemplateId": "itmpl_abc", "fields": {"address": {"city": "Paris", "lines": ["1", "2"]}}},
        {"inquiryTemplateId": "itmpl_abc", "note": None, "expirationAfterCreateSeconds": 3600, "flag": True},
    ],
)
def test_round_trip_inquiry_create(params: dict) -> None:
    request = encode("inquiry_create", params, CATALOG)
    assert decode(200, request.body) == params


def test_round_trip_drops_identifier_keys() -> None:
    params = {"accountId": "act_123", "referenceId": "ref-9", "fields": {"emailAddress": "a@b.co"}}
    request = encode("account_update", params, CATALOG)
    assert decode(200, request.body) == {"referenceId": "ref-9", "fields": {"emailAddress": "a@b.co"}}


def test_round_trip_action_meta_body() -> None:
    request = encode("inquiry_add_tag", {"inquiryId": "inq_1", "tagName": "high-risk"}, CATALOG)
    assert request.path == "/inquiries/inq_1/add-tag"
    assert request.body == {"meta": {"tagName": "high-risk"}}
    assert decode(200, request.body) == {"tagName": "high-risk"}


def test_encode_does_not_share_nested_values() -> None:
    fields = {"nameFirst": "Jane"}
    request = encode("inquiry_create", {"inquiryTemplateId": "itmpl_abc", "fields": fields}, CATALOG)
    fields["nameFirst"] = "Changed"
    assert request.body["data"]["attributes"]["fields"] == {"nameFirst": "Jane"}


@pytest.mark.parametrize("name", ["inquiry_create", "account_list", "widget_frobnicate", "ping", "_", "a_b_c"])
def test_valid_tool_names_encode(name: str) -> None:
    encode(name, {}, CATALOG)


@pytest.mark.parametrize("name", ["", "Inquiry_create", "inquiry-create", "inquiry create", "inq1", "tool.v1", 42, None])
def test_invalid_tool_names_rejected(name) -> None:
    with pytest.raises(InvalidToolName):
        encode(name, {}, CATALOG)


def test_trailing_newline_name_rejected() -> None:
    with pytest.raises(InvalidToolName):
        encode("inquiry_create\n", {}, CATALOG)


@pytest.mark.parametrize("key", ["data", "attributes"])
def test_reserved_keys_rejected(key: str) -> None:
    with pytest.raises(MalformedInvocation) as exc_info:
        encode("inquiry_create", {key: {"inquiryTemplateId": "itmpl_abc"}}, CATALOG)
    assert exc_info.value.parameter == key


def test_data_key_rejected_for_unknown_tool() -> None:
    with pytest.raises(MalformedInvocation):
        encode("widget_create", {"data": {}}, CATALOG)


def test_missing_required_identifier() -> None:
    with pytest.raises(MalformedInvocation) as exc_info:
        encode("account_update", {"email": "new@email.com"}, CATALOG)
    assert exc_info.value.parameter == "accountId"


def test_empty_identifier_rejected() -> None:
    with pytest.raises(MalformedInvocation):
        encode("inquiry_retrieve", {"inquiryId": "  "}, CATALOG)


def test_identifier_is_percent_encoded() -> None:
    request = encode("inquiry_retrieve", {"inquiryId": "inq_a/b"}, CATALOG)
    assert request.path == "/inquiries/inq_a%2Fb"


def test_inquiry_template_id_stays_in_attributes() -> None:
    request = encode("inquiry_create", {"inquiryTemplateId": "itmpl_abc", "accountId": "act_1"}, CATALOG)
    assert request.path == "/inquiries"
    assert request.body["data"]["attributes"] == {"inquiryTemplateId": "itmpl_abc", "accountId": "act_1"}


def test_list_builds_query_params() -> None:
    request = encode(
        "inquiry_list",
        {"pageSize": 10, "pageAfter": "inq_9", "include": ["account", "reports"], "filter": {"status": "completed"}},
        CATALOG,
    )
    assert request.method == "GET"
    assert request.body is None
    assert request.query == {
        "page[size]": "10",
        "page[after]": "inq_9",
        "include": "account,reports",
        "filter[status]": "completed",
    }


def test_idempotency_key_becomes_header() -> None:
    request = encode("inquiry_create", {"inquiryTemplateId": "itmpl_abc", "idempotencyKey": "k-1"}, CATALOG)
    assert request.headers == {"Idempotency-Key": "k-1"}
    assert "idempotencyKey" not in request.body["data"]["attributes"]


def test_redact_has_no_body() -> None:
    request = encode("inquiry_redact", {"inquiryId": "inq_1"}, CATALOG)
    assert request.method == "DELETE"
    assert request.path == "/inquiries/inq_1"
    assert request.body is None


def test_unknown_tool_is_inferred_from_name() -> None:
    request = encode("gadget_update", {"gadgetId": "gdg_1", "color": "red"})
    assert request.method == "PATCH"
    assert request.path == "/gadgets/gdg_1"
    assert request.body == {"data": {"attributes": {"color": "red"}}}


def test_decode_single_resource_flattens() -> None:
    body = {"data": {"type": "inquiry", "id": "inq_1", "attributes": {"status": "completed", "referenceId": "r"}}}
    assert decode(200, body) == {"status": "completed", "referenceId": "r", "id": "inq_1", "type": "inquiry"}


def test_decode_list_and_included() -> None:
    body = {
        "data": [
            {"type": "account", "id": "act_1", "attributes": {"referenceId": "a"}},
            {"type": "account", "id": "act_2", "attributes": {"referenceId": "b"}},
        ],
        "included": [{"type": "inquiry", "id": "inq_1", "attributes": {"status": "created"}}],
        "links": {"next": "/accounts?page[after]=act_2"},
    }
    result = decode(200, body)
    assert [item["id"] for item in result["items"]] == ["act_1", "act_2"]
    assert result["links"] == {"next": "/accounts?page[after]=act_2"}
    assert result["included"] == [{"status": "created", "id": "inq_1", "type": "inquiry"}]


@pytest.mark.parametrize("body", [None, "", b""])
def test_decode_empty_success_body(body) -> None:
    assert decode(204, body) == {}


def test_decode_json_text_body() -> None:
    assert decode(200, '{"data": {"id": "inq_1", "attributes": {}}}') == {"id": "inq_1"}


@pytest.mark.parametrize(
    "status, body",
    [
        (200, "<html>oops</html>"),
        (200, [1, 2, 3]),
        (200, {"unexpected": True}),
        (200, {"data": "not-an-object"}),
        (502, {"message": "bad gateway"}),
        (400, {"errors": []}),
        (400, {"errors": ["not-an-object"]}),
    ],
)
def test_decode_unparseable(status: int, body) -> None:
    with pytest.raises(UnparseableResponse) as exc_info:
        decode(status, body)
    assert exc_info.value.code == "UNPARSEABLE_RESPONSE"


def test_decode_empty_error_body_is_upstream_error() -> None:
    with pytest.raises(UpstreamError) as exc_info:
        decode(503, None)
    assert exc_info.value.errors[0].title == "Service Unavailable"


def test_translator_binds_catalog() -> None:
    translator = EnvelopeTranslator(CATALOG)
    request = translator.encode("account_update", {"accountId": "act_1", "email": "x@y.z"})
    assert translator.decode(200, request.body) == {"email": "x@y.z"}


@pytest.mark.parametrize(
    "name, params",
    [
        ("gadget_redact", {}),
        ("gadget_delete", {}),
        ("gadget_retrieve", {"include": "owner"}),
        ("gadget_update", {"color": "red"}),
    ],
)
def test_inferred_item_tool_requires_identifier(name: str, params: dict) -> None:
    with pytest.raises(MalformedInvocation) as exc_info:
        encode(name, params)
    assert exc_info.value.parameter == "gadgetId"


def test_inferred_action_without_identifier_targets_collection() -> None:
    request = encode("gadget_recalculate", {"force": True})
    assert request.method == "POST"
    assert request.path == "/gadgets/recalculate"
    assert request.body == {"meta": {"force": True}}
