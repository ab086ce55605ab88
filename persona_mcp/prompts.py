"""
描述: MCP Prompt 模板
主要功能:
    - inquiry_analysis: 分析单个 inquiry 的状态与风险
    - inquiry_review: 按 security / completeness / compliance 维度复核
    - inquiry_troubleshooting: 排查 inquiry 卡住或失败的原因
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from persona_mcp.errors import MalformedInvocation, PromptError, PromptNotFound
from persona_mcp.utils.security import sanitize_string, validate_inquiry_id


REVIEW_TYPES = ("security", "completeness", "compliance")


@dataclass(frozen=True)
class PromptArgumentDef:
    name: str
    description: str
    required: bool = False


@dataclass(frozen=True)
class PromptDefinition:
    name: str
    description: str
    arguments: tuple[PromptArgumentDef, ...] = ()


@dataclass
class RenderedPrompt:
    description: str
    messages: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"description": self.description, "messages": list(self.messages)}


PROMPTS: tuple[PromptDefinition, ...] = (
    PromptDefinition(
        "inquiry_analysis",
        "Analyze an inquiry and provide insights about its status and data",
        (PromptArgumentDef("inquiry_id", "The ID of the inquiry to analyze", required=True),),
    ),
    PromptDefinition(
        "inquiry_review",
        "Review an inquiry and suggest next steps based on its current state",
        (
            PromptArgumentDef("inquiry_id", "The ID of the inquiry to review", required=True),
            PromptArgumentDef("review_type", "Type of review to perform (security, completeness, compliance)"),
        ),
    ),
    PromptDefinition(
        "inquiry_troubleshooting",
        "Help troubleshoot issues with an inquiry",
        (
            PromptArgumentDef("inquiry_id", "The ID of the inquiry having issues", required=True),
            PromptArgumentDef("issue_description", "Description of the issue being experienced"),
        ),
    ),
)


_REVIEW_CHECKLISTS: dict[str | None, str] = {
    "security": (
        "- **Security Review**:\n"
        "  - Check for suspicious behavioral patterns\n"
        "  - Review bot scores and threat levels\n"
        "  - Assess document authenticity indicators\n"
        "  - Look for fraud signals"
    ),
    "completeness": (
        "- **Completeness Review**:\n"
        "  - Verify all required fields are filled\n"
        "  - Check whether all verifications are complete\n"
        "  - Ensure proper documentation is provided\n"
        "  - Identify missing information"
    ),
    "compliance": (
        "- **Compliance Review**:\n"
        "  - Check regulatory requirement adherence\n"
        "  - Review data collection compliance\n"
        "  - Verify consent and privacy requirements\n"
        "  - Assess retention policy compliance"
    ),
    None: (
        "- **General Review**:\n"
        "  - Overall inquiry status and progress\n"
        "  - Data completeness and quality\n"
        "  - Security and fraud indicators\n"
        "  - Compliance with requirements\n"
        "  - Recommended next actions"
    ),
}


def list_prompts() -> list[PromptDefinition]:
    return list(PROMPTS)


def _inquiry_id(prompt_name: str, arguments: Mapping[str, Any]) -> str:
    inquiry_id = arguments.get("inquiry_id")
    if not inquiry_id:
        raise PromptError(prompt_name, f"inquiry_id is required for the {prompt_name} prompt", "inquiry_id")
    if not validate_inquiry_id(inquiry_id):
        raise PromptError(
            prompt_name,
            f"Invalid inquiry_id {inquiry_id!r}: expected the format inq_xxx",
            "inquiry_id",
        )
    return inquiry_id


def _optional_text(
    prompt_name: str,
    arguments: Mapping[str, Any],
    name: str,
    max_length: int,
) -> str | None:
    value = arguments.get(name)
    if value in (None, ""):
        return None
    try:
        return sanitize_string(value, max_length=max_length, field_name=name) or None
    except MalformedInvocation as exc:
        raise PromptError(prompt_name, exc.message, name) from exc


def _user_message(text: str) -> dict[str, str]:
    return {"role": "user", "text": text}


def _analysis(arguments: Mapping[str, Any], max_length: int) -> RenderedPrompt:
    inquiry_id = _inquiry_id("inquiry_analysis", arguments)
    text = (
        f'Please analyze the inquiry with ID "{inquiry_id}" and provide a comprehensive analysis including:\n\n'
        "1. **Current Status**: What is the current state of this inquiry?\n"
        "2. **Progress Assessment**: How far along is the verification process?\n"
        "3. **Data Quality**: Are there any issues with the submitted data?\n"
        "4. **Risk Assessment**: Any potential fraud or compliance concerns?\n"
        "5. **Next Steps**: What actions should be taken next?\n\n"
        "First, retrieve the inquiry details using the inquiry_retrieve tool, "
        "then provide your analysis based on the returned data."
    )
    return RenderedPrompt(
        description=f"Analyze inquiry {inquiry_id} and provide comprehensive insights",
        messages=[_user_message(text)],
    )


def _review(arguments: Mapping[str, Any], max_length: int) -> RenderedPrompt:
    inquiry_id = _inquiry_id("inquiry_review", arguments)
    review_type = _optional_text("inquiry_review", arguments, "review_type", max_length)
    if review_type is not None:
        review_type = review_type.lower()
        if review_type not in REVIEW_TYPES:
            raise PromptError(
                "inquiry_review",
                f"Invalid review_type. Must be one of: {', '.join(REVIEW_TYPES)}",
                "review_type",
            )
    focus = f"focusing on {review_type} aspects" if review_type else "covering all aspects"
    text = (
        f'Please conduct a thorough review of inquiry "{inquiry_id}" {focus}.\n\n'
        f"Review checklist:\n{_REVIEW_CHECKLISTS[review_type]}\n\n"
        "First, retrieve the inquiry details using the inquiry_retrieve tool with related objects included, "
        "then provide your detailed review."
    )
    return RenderedPrompt(description=f"Review inquiry {inquiry_id} {focus}", messages=[_user_message(text)])


def _troubleshooting(arguments: Mapping[str, Any], max_length: int) -> RenderedPrompt:
    inquiry_id = _inquiry_id("inquiry_troubleshooting", arguments)
    issue = _optional_text("inquiry_troubleshooting", arguments, "issue_description", max_length)
    context = f'The reported issue is: "{issue}"' if issue else "No specific issue description provided."
    text = (
        f'Please help troubleshoot inquiry "{inquiry_id}". {context}\n\n'
        "Troubleshooting steps:\n"
        "1. **Retrieve inquiry details** - Use the inquiry_retrieve tool to get the current state\n"
        "2. **Analyze current status** - Check whether the inquiry is in the expected state\n"
        "3. **Review timeline** - Look at creation, start and completion timestamps\n"
        "4. **Check for errors** - Look for failed verifications or reports\n"
        "5. **Identify blockers** - Determine what might be preventing progress\n"
        "6. **Suggest solutions** - Provide actionable recommendations\n\n"
        "Please start by retrieving the inquiry data and then provide step-by-step troubleshooting guidance."
    )
    return RenderedPrompt(
        description=f"Help troubleshoot issues with inquiry {inquiry_id}",
        messages=[_user_message(text)],
    )


_RENDERERS: dict[str, Callable[[Mapping[str, Any], int], RenderedPrompt]] = {
    "inquiry_analysis": _analysis,
    "inquiry_review": _review,
    "inquiry_troubleshooting": _troubleshooting,
}


def render_prompt(
    name: str,
    arguments: Mapping[str, Any] | None = None,
    max_length: int = 1000,
) -> RenderedPrompt:
    """
    渲染 Prompt

    参数:
        name: Prompt 名称
        arguments: Prompt 参数
        max_length: 可选文本参数的最大长度 (security.max_string_length)

    抛出:
        PromptNotFound: 未知 Prompt 名称
        PromptError: 参数缺失或格式错误
    """
    renderer = _RENDERERS.get(name)
    if renderer is None:
        raise PromptNotFound(name)
    return renderer(arguments or {}, max_length)
