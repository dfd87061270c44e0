"""
Instructors: the protocol between an agent and a model that has no
native tool calling.

An instructor contributes two things. The suffix appended to the
system prompt tells the model which tools exist and in which JSON
format to request them or to give the final answer. The parser turns
the text of the response back into an `AgentOutput`.

Parsing is permissive. The JSON may come in a code block, follow a
reasoning section, or need repairs (see parse_helpers). A response that
is not JSON at all is taken as the final answer. Only a response that
evidently attempts the JSON protocol (it contains all the keys of one
of the accepted formats) and still cannot be interpreted raises
`OutputParseError`, so that the executor asks the model again instead
of returning a broken answer.

Note that this test on the presence of the keys is a heuristic: a
prose answer that mentions 'final_answer' in its text and is not
valid JSON is treated as a failed attempt.

Two instructors are provided:

- DefaultInstructor: `{"action": ..., "action_input": ...}` to call a
    tool (with an optional "id"), `{"final_answer": ...}` to answer.
- Qwen3Instructor: the tool-call format of the Qwen3 models,
    `<tool_call>{"name": ..., "arguments": ...}</tool_call>`, also
    accepting the action/action_input keys.
"""

import json
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from lmagent.errors import OutputParseError
from lmagent.schemas import AgentAction, AgentFinish, AgentOutput, ToolCall
from lmagent.tools.base import Tool
from .parse_helpers import (
    remove_thought,
    extract_from_codeblock,
    extract_from_tag,
    parse_partial_json,
    flatten_final_answer,
    fix_text,
    has_event_keys,
    mentions_event_keys,
)

DEFAULT_TOOL_PROMPT = """

<INSTRUCTIONS>
- You have two options:
    1. Use a tool
    2. Give your final answer
- You may repeat tool use cycle as many times as needed before giving your final answer
- When not using a tool, directly give your final answer
- ALL RESPONSES MUST BE IN JSON FORMAT

Option 1 : Use a tool (If you have tools and you need to use them)
The following is the description of the tools available to you:
{{tools}}
- IF YOU DON'T HAVE TOOLS, PASS THIS OPTION

<TOOL_USAGE_OUTPUT_FORMAT>
{
    "action": (string), The action to take; MUST BE one of [{{tool_names}}]
    "action_input": (object), The input to the action, JSON object. The structure object depends on the action you are taking, and is specified in the tool description below.
}
</TOOL_USAGE_OUTPUT_FORMAT>


Option 2 : Give your best final answer
- Only return a final answer once all required tools have been used
- **NEVER RETURN TOOL USE PLAN AS A FINAL ANSWER**

<FINAL_ANSWER_OUTPUT_FORMAT>
{
    "final_answer": Your final answer as requested by the user. The final answer should follow the format specified in the user request
}
</FINAL_ANSWER_OUTPUT_FORMAT>

</INSTRUCTIONS>"""

QWEN3_TOOL_PROMPT = """

# Tools

You may call one or more functions to assist with the user query.

You are provided with function signatures within <tools></tools> XML tags:
<tools>
{{tools}}
</tools>

For each function call, return a json object with function name and arguments within <tool_call></tool_call> XML tags:
<tool_call>
{"name": <function-name>, "arguments": <args-json-object>}
</tool_call>"""

ACTION_KEY = "action"
ACTION_INPUT_KEY = "action_input"
FINAL_ANSWER_KEY = "final_answer"
NAME_KEY = "name"
ARGUMENTS_KEY = "arguments"

_FINAL_ANSWER_RE = re.compile(r'"final_answer"\s*:\s*"(.*)"\s*\n', re.M)
_ACTION_RE = re.compile(r'"action"\s*:\s*"(.*)"\s*\n', re.M)
_ACTION_INPUT_RE = re.compile(r'"action_input"\s*:\s*"(.*)"\s*\n', re.M)


def _call_id(value: Any) -> str | None:
    return value if isinstance(value, str) else None


class Instructor(ABC):
    """Abstract interface of instructors."""

    @abstractmethod
    def create_suffix(self, tools: Sequence[Tool]) -> str:
        """The text appended to the system prompt to describe the
        tools and the response format."""
        pass

    @abstractmethod
    def parse_output(self, output: str) -> AgentOutput:
        """Interpret the text of a model response.

        Raises:
            OutputParseError: if the response attempts the protocol
                but cannot be interpreted
        """
        pass


class DefaultInstructor(Instructor):
    """JSON protocol with action/action_input and final_answer keys."""

    key_sets: tuple[tuple[str, ...], ...] = (
        (ACTION_KEY, ACTION_INPUT_KEY),
        (FINAL_ANSWER_KEY,),
    )

    def create_suffix(self, tools: Sequence[Tool]) -> str:
        tool_names = ", ".join(t.normalized_name() for t in tools)
        descriptions = "\n".join(t.to_plain_description() for t in tools)
        return DEFAULT_TOOL_PROMPT.replace(
            "{{tool_names}}", tool_names
        ).replace("{{tools}}", descriptions)

    def value_to_output(self, value: Any) -> AgentOutput:
        """Interpret a parsed JSON value.

        Raises:
            ValueError: if the value has neither format
        """
        match value:
            case {'action': str(action)}:
                return AgentAction(
                    tool_calls=[
                        ToolCall(
                            id=_call_id(value.get('id')),  # type: ignore
                            name=action,
                            arguments=value.get(ACTION_INPUT_KEY),
                        )
                    ]
                )
            case {'final_answer': answer}:
                return AgentFinish(final_answer=flatten_final_answer(answer))
            case _:
                raise ValueError(
                    "expected a JSON object with either the "
                    "'action' or the 'final_answer' key"
                )

    def parse_with_regex(self, text: str) -> AgentOutput | None:
        """Recover the output from JSON-like lines when the text could
        not be interpreted as a whole."""
        if match := _FINAL_ANSWER_RE.search(text):
            return AgentFinish(final_answer=fix_text(match.group(1)))

        action = _ACTION_RE.search(text)
        action_input = _ACTION_INPUT_RE.search(text)
        if action is None or action_input is None:
            return None
        raw_input = fix_text(action_input.group(1))
        arguments: Any
        try:
            arguments = json.loads(raw_input)
        except json.JSONDecodeError:
            arguments = raw_input
        return AgentAction(
            tool_calls=[
                ToolCall(name=fix_text(action.group(1)), arguments=arguments)
            ]
        )

    def clean_text(self, output: str) -> str:
        return extract_from_codeblock(remove_thought(output))

    def parse_output(self, output: str) -> AgentOutput:
        text = self.clean_text(output)

        parsed = True
        value: Any = None
        try:
            value = parse_partial_json(text)
        except json.JSONDecodeError:
            parsed = False

        if parsed:
            malformed = has_event_keys(value, self.key_sets)
        else:
            malformed = mentions_event_keys(text, self.key_sets)

        error: Exception
        if parsed:
            try:
                return self.value_to_output(value)
            except ValueError as e:
                error = e
        else:
            error = ValueError("the output is not valid JSON")

        fallback = self.parse_with_regex(text)
        if fallback is not None:
            return fallback
        if not malformed:
            return AgentFinish(final_answer=text)
        raise OutputParseError(
            f"Malformed agent output: {error}", text
        ) from error


class Qwen3Instructor(DefaultInstructor):
    """Tool calls in <tool_call> tags with name/arguments keys."""

    key_sets = (
        (NAME_KEY, ARGUMENTS_KEY),
        (ACTION_KEY, ACTION_INPUT_KEY),
        (FINAL_ANSWER_KEY,),
    )

    def create_suffix(self, tools: Sequence[Tool]) -> str:
        schemas = "\n\n".join(
            json.dumps(t.as_openai_tool(), indent=2, ensure_ascii=False)
            for t in tools
        )
        return QWEN3_TOOL_PROMPT.replace("{{tools}}", schemas)

    def value_to_output(self, value: Any) -> AgentOutput:
        if not isinstance(value, dict):
            raise ValueError("expected a JSON object")
        name = value.get(NAME_KEY, value.get(ACTION_KEY))  # type: ignore
        if name is not None:
            if not isinstance(name, str):
                raise ValueError("the tool name must be a string")
            arguments = value.get(  # type: ignore
                ARGUMENTS_KEY, value.get(ACTION_INPUT_KEY)  # type: ignore
            )
            return AgentAction(
                tool_calls=[
                    ToolCall(
                        id=_call_id(value.get('id')),  # type: ignore
                        name=name,
                        arguments=arguments,
                    )
                ]
            )
        if FINAL_ANSWER_KEY in value:
            answer = value[FINAL_ANSWER_KEY]  # type: ignore
            return AgentFinish(final_answer=flatten_final_answer(answer))
        raise ValueError(
            "expected a JSON object with either the "
            "'name' or the 'final_answer' key"
        )

    def parse_with_regex(self, text: str) -> AgentOutput | None:
        return None

    def clean_text(self, output: str) -> str:
        text = extract_from_tag(remove_thought(output), "tool_call")
        return extract_from_codeblock(text)


def get_instructor(name: str) -> Instructor:
    """The instructor with the given name ('default' or 'qwen3')."""
    match name:
        case 'default':
            return DefaultInstructor()
        case 'qwen3':
            return Qwen3Instructor()
        case _:
            raise ValueError(f"Invalid instructor: {name}")
