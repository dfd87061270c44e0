"""
Helpers over LangChain messages.
"""

import json
from collections.abc import Sequence

from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    ToolMessage,
)

from .tool_call import ToolCall


def message_text(message: BaseMessage) -> str:
    """The text of a message. Content given as a list of blocks is
    reduced to its text blocks."""
    content = message.content
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content:
        match block:
            case str():
                parts.append(block)
            case {'type': 'text', 'text': text}:
                parts.append(str(text))
            case _:
                pass
    return "".join(parts)


def tool_call_message(tool_calls: Sequence[ToolCall]) -> AIMessage:
    """An assistant message requesting the given tool calls."""
    return AIMessage(
        content="", tool_calls=[t.to_langchain() for t in tool_calls]
    )


def tool_message(content: str, tool_call_id: str) -> ToolMessage:
    """The result of the tool call with the given id."""
    return ToolMessage(content=content, tool_call_id=tool_call_id)


def message_to_string(message: BaseMessage) -> str:
    if isinstance(message, AIMessage) and message.tool_calls:
        calls = [
            {'id': c.get('id'), 'name': c['name'], 'args': c['args']}
            for c in message.tool_calls
        ]
        return "Tool call:\n" + json.dumps(
            calls, indent=2, ensure_ascii=False
        )
    return f"{message.type}: {message_text(message)}"


def messages_to_string(messages: Sequence[BaseMessage]) -> str:
    """A human-readable transcript, one message per line."""
    return "\n".join(message_to_string(m) for m in messages)
