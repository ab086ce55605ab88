from __future__ import annotations

import pytest

from persona_mcp.errors import PromptError, PromptNotFound
from persona_mcp.prompts import list_prompts, render_prompt


def test_prompt_definitions() -> None:
    prompts = {prompt.name: prompt for prompt in list_prompts()}
    assert set(prompts) == {"inquiry_analysis", "inquiry_review", "inquiry_troubleshooting"}
    review_args = {arg.name: arg.required for arg in prompts["inquiry_review"].arguments}
    assert review_args == {"inquiry_id": True, "review_type": False}


def test_analysis_prompt() -> None:
    rendered = render_prompt("inquiry_analysis", {"inquiry_id": "inq_abc123"})
    assert "inq_abc123" in rendered.description
    assert rendered.messages[0]["role"] == "user"
    assert "inquiry_retrieve" in rendered.messages[0]["text"]


@pytest.mark.parametrize("review_type, heading", [
    ("security", "Security Review"),
    ("completeness", "Completeness Review"),
    ("Compliance", "Compliance Review"),
    (None, "General Review"),
])
def test_review_prompt_checklists(review_type, heading) -> None:
    arguments = {"inquiry_id": "inq_abc123"}
    if review_type:
        arguments["review_type"] = review_type
    text = render_prompt("inquiry_review", arguments).messages[0]["text"]
    assert heading in text


def test_review_rejects_unknown_type() -> None:
    with pytest.raises(PromptError) as exc_info:
        render_prompt("inquiry_review", {"inquiry_id": "inq_abc123", "review_type": "vibes"})
    assert exc_info.value.details["argument"] == "review_type"


def test_troubleshooting_includes_issue() -> None:
    rendered = render_prompt(
        "inquiry_troubleshooting",
        {"inquiry_id": "inq_abc123", "issue_description": "Stuck in pending\x07"},
    )
    assert 'The reported issue is: "Stuck in pending"' in rendered.messages[0]["text"]
    default = render_prompt("inquiry_troubleshooting", {"inquiry_id": "inq_abc123"})
    assert "No specific issue description provided." in default.messages[0]["text"]


@pytest.mark.parametrize("arguments", [{}, {"inquiry_id": ""}, {"inquiry_id": "acc_123"}, {"inquiry_id": "inq_\x00"}])
def test_inquiry_id_validation(arguments) -> None:
    with pytest.raises(PromptError):
        render_prompt("inquiry_analysis", arguments)


def test_unknown_prompt() -> None:
    with pytest.raises(PromptNotFound):
        render_prompt("account_summary", {"inquiry_id": "inq_abc123"})


def test_issue_description_respects_max_length() -> None:
    arguments = {"inquiry_id": "inq_abc123", "issue_description": "x" * 50}
    assert "x" * 50 in render_prompt("inquiry_troubleshooting", arguments).messages[0]["text"]
    with pytest.raises(PromptError) as exc_info:
        render_prompt("inquiry_troubleshooting", arguments, max_length=20)
    assert exc_info.value.details["argument"] == "issue_description"
