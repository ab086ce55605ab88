from __future__ import annotations

import asyncio
import json

import httpx

from persona_mcp.config import Settings
from persona_mcp.server.app_factory import create_app


def _persona_handler(request: httpx.Request) -> httpx.Response:
    if request.method == "GET" and request.url.path.endswith("/inquiries"):
        return httpx.Response(200, json={"data": [{"type": "inquiry", "id": "inq_1", "attributes": {"status": "created"}}]})
    if request.method == "PATCH" and request.url.path.endswith("/accounts/act_123"):
        body = json.loads(request.content)
        return httpx.Response(
            200,
            json={"data": {"type": "account", "id": "act_123", "attributes": body["data"]["attributes"]}},
        )
    if request.method == "POST" and request.url.path.endswith("/inquiries"):
        return httpx.Response(
            422,
            json={"errors": [{"status": "422", "code": "invalid_parameter", "title": "Invalid template",
                              "source": {"pointer": "/data/attributes/inquiryTemplateId"}}]},
        )
    return httpx.Response(404, json={"errors": [{"status": "404", "title": "Not found"}]})


def _settings() -> Settings:
    settings = Settings()
    settings.persona.api_key = "persona_sandbox_test"
    settings.persona.request.max_retries = 0
    return settings


def test_http_routes() -> None:
    async def run() -> None:
        app = create_app(_settings(), transport=httpx.MockTransport(_persona_handler))
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            root = await client.get("/")
            assert root.json()["service"] == "persona-api-mcp"

            health = await client.get("/health", params={"deep": "true"})
            assert health.status_code == 200
            assert health.json()["persona_api"] == "ok"

            tools = await client.get("/mcp/tools")
            assert tools.status_code == 200
            assert any(tool["name"] == "inquiry_create" for tool in tools.json()["tools"])

    asyncio.run(run())


def test_call_tool_success_and_errors() -> None:
    async def run() -> None:
        app = create_app(_settings(), transport=httpx.MockTransport(_persona_handler))
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            ok = await client.post(
                "/mcp/tools/account_update",
                json={"params": {"accountId": "act_123", "email": "new@email.com"}},
            )
            assert ok.json() == {
                "success": True,
                "data": {"email": "new@email.com", "id": "act_123", "type": "account"},
                "error": None,
            }

            upstream = await client.post(
                "/mcp/tools/inquiry_create",
                json={"params": {"inquiryTemplateId": "itmpl_missing"}},
            )
            payload = upstream.json()
            assert payload["success"] is False
            assert payload["error"]["code"] == "UPSTREAM_ERROR"
            error = payload["error"]["detail"]["errors"][0]
            assert error["source"] == {"pointer": "/data/attributes/inquiryTemplateId"}

            malformed = await client.post(
                "/mcp/tools/inquiry_create",
                json={"params": {"data": {"attributes": {}}}},
            )
            assert malformed.json()["error"]["code"] == "MALFORMED_INVOCATION"

            missing = await client.post("/mcp/tools/widget_spin", json={"params": {}})
            assert missing.status_code == 404

    asyncio.run(run())


def test_resource_and_prompt_routes() -> None:
    async def run() -> None:
        app = create_app(_settings(), transport=httpx.MockTransport(_persona_handler))
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            listing = await client.get("/mcp/resources")
            assert any(item["uri"] == "persona://inquiries" for item in listing.json()["resources"])

            read = await client.get("/mcp/resources/read", params={"uri": "persona://inquiries"})
            assert read.status_code == 200
            assert json.loads(read.json()["text"])["items"][0]["id"] == "inq_1"

            not_found = await client.get("/mcp/resources/read", params={"uri": "persona://widgets"})
            assert not_found.status_code == 404

            prompts = await client.get("/mcp/prompts")
            assert len(prompts.json()["prompts"]) == 3

            prompt = await client.post(
                "/mcp/prompts/inquiry_review",
                json={"arguments": {"inquiry_id": "inq_abc", "review_type": "security"}},
            )
            assert prompt.status_code == 200
            assert "Security Review" in prompt.json()["messages"][0]["text"]

            bad = await client.post("/mcp/prompts/inquiry_review", json={"arguments": {"inquiry_id": "nope"}})
            assert bad.status_code == 400
            unknown = await client.post("/mcp/prompts/nope", json={"arguments": {}})
            assert unknown.status_code == 404

    asyncio.run(run())
