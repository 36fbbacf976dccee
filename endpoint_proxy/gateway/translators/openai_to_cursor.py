"""
OpenAI to Cursor request translator.

Cursor has no system role and no tool role:
- system messages become user messages with an instruction banner
- tool results become user messages wrapping the result in <tool_result> tags
- assistant tool_calls are kept (Cursor generates tool calls itself),
  minus the streaming-only "index" field
"""

import re
from typing import Any, Dict, List, Optional

from endpoint_proxy.core.config import settings
from endpoint_proxy.gateway.formats import Format
from endpoint_proxy.gateway.translators.registry import TranslatorRegistryBuilder


SYSTEM_BANNER = "[System Instructions]\n"

SYSTEM_REMINDER_RE = re.compile(r"<system-reminder>.*?</system-reminder>", re.DOTALL)

TOOL_RESULT_TEMPLATE = (
    "<tool_result>\n"
    "<tool_name>{name}</tool_name>\n"
    "<tool_call_id>{tool_call_id}</tool_call_id>\n"
    "<result>{result}</result>\n"
    "</tool_result>"
)

# Top-level OpenAI/Anthropic fields Cursor does not understand
STRIPPED_FIELDS = frozenset({"user", "metadata", "tool_choice", "stream_options", "system"})


def extract_content(content: Any) -> str:
    """Flatten message content to text; non-text parts are dropped."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            str(part.get("text") or "")
            for part in content
            if isinstance(part, dict) and part.get("type") == "text"
        )
    return ""


def _last_tool_name(result: List[Dict[str, Any]]) -> str:
    if not result:
        return ""
    tool_calls = result[-1].get("tool_calls") or []
    if not tool_calls:
        return ""
    function = tool_calls[0].get("function")
    if not isinstance(function, dict):
        return ""
    return function.get("name") or ""


def convert_messages(messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Convert OpenAI chat history to Cursor's user/assistant-only shape."""
    result: List[Dict[str, Any]] = []

    for msg in messages:
        role = msg.get("role")

        if role == "system":
            result.append({
                "role": "user",
                "content": f"{SYSTEM_BANNER}{extract_content(msg.get('content'))}",
            })

        elif role == "user":
            result.append({"role": "user", "content": extract_content(msg.get("content"))})

        elif role == "tool":
            raw = extract_content(msg.get("content"))
            tool_content = SYSTEM_REMINDER_RE.sub("", raw).strip()
            result.append({
                "role": "user",
                "content": TOOL_RESULT_TEMPLATE.format(
                    name=_last_tool_name(result),
                    tool_call_id=msg.get("tool_call_id") or "",
                    result=tool_content,
                ),
            })

        elif role == "assistant":
            content = extract_content(msg.get("content"))
            tool_calls = msg.get("tool_calls") or []
            if tool_calls:
                stripped = [
                    {k: v for k, v in tc.items() if k != "index"}
                    for tc in tool_calls
                ]
                result.append({"role": "assistant", "content": content, "tool_calls": stripped})
            elif content:
                result.append({"role": "assistant", "content": content})

    return result


def build_cursor_request(
    model: str,
    body: Dict[str, Any],
    stream: bool = False,
    credentials: Optional[Any] = None,
) -> Dict[str, Any]:
    """
    Build a Cursor chat body from an OpenAI chat body.

    The input body is not modified.

    Args:
        model: Upstream model name
        body: Canonical OpenAI chat request
        stream: Whether the caller wants a streamed response
        credentials: Unused; part of the translator signature

    Returns:
        Cursor request body
    """
    messages = convert_messages(body.get("messages") or [])
    rest = {k: v for k, v in body.items() if k not in STRIPPED_FIELDS}
    rest.update({
        "model": model,
        "messages": messages,
        "stream": stream,
        "max_tokens": settings.gateway.max_output_tokens_cursor,
    })
    return rest


def register(builder: TranslatorRegistryBuilder) -> None:
    builder.register(Format.OPENAI, Format.CURSOR, build_cursor_request, None)
