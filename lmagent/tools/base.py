"""
The tool abstraction.

A tool is a capability offered to the agent: it has a name, a
description that tells the model when to use it, a JSON schema of its
parameters, and an asynchronous `call` method that takes the
arguments produced by the model (any JSON value) and returns a
`ToolOutput`.

Tool names are compared after normalization (lower case, spaces
replaced by underscores), so that 'Web Search' and 'web_search'
designate the same tool.

Example:
    ```python
    class Shout(Tool):
        name = "shout"
        description = "Repeats the input in upper case"

        async def call(self, input: Any) -> ToolOutput:
            return ToolOutput.from_value(str(input).upper())
    ```
"""

import json
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict

LIST_SEPARATOR = "\n---\n"


def normalize_tool_name(name: str) -> str:
    """Lower case, with spaces replaced by underscores."""
    return name.lower().replace(" ", "_")


def default_parameters() -> dict[str, Any]:
    """The schema of a tool taking a single string."""
    return {
        'type': "object",
        'properties': {
            'input': {
                'type': "string",
                'description': "The input for the tool",
            }
        },
        'required': ['input'],
        'additionalProperties': False,
    }


class ToolOutput(BaseModel):
    """The result of a tool call. Lists of texts are shown to the
    model separated by a dashed line."""

    data: str | list[str]
    summary: str | None = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        if isinstance(self.data, list):
            return LIST_SEPARATOR.join(self.data)
        return self.data

    @classmethod
    def from_value(cls, value: Any) -> 'ToolOutput':
        """Wrap the value returned by a tool function."""
        match value:
            case ToolOutput():
                return value
            case str():
                return cls(data=value)
            case list() if all(isinstance(v, str) for v in value):  # type: ignore
                return cls(data=value)  # type: ignore
            case None:
                return cls(data="")
            case BaseModel():
                return cls(data=value.model_dump_json(indent=2))
            case dict() | list():
                return cls(
                    data=json.dumps(value, indent=2, ensure_ascii=False)
                )
            case _:
                return cls(data=str(value))


def _describe_property(
    name: str, schema: dict[str, Any], required: bool, indent: int
) -> str:
    ptype = schema.get('type', "any")
    if isinstance(ptype, list):
        ptype = " | ".join(str(t) for t in ptype)  # type: ignore
    if 'enum' in schema:
        ptype = f"{ptype}, one of {schema['enum']}"
    text = (
        f'"{name}": ({ptype}, '
        + ("required" if required else "optional")
        + ")"
    )
    if schema.get('description'):
        text += f", {schema['description']}"
    if ptype == "object" and schema.get('properties'):
        text += " " + describe_parameters(schema, indent)
    elif ptype == "array" and isinstance(schema.get('items'), dict):
        items: dict[str, Any] = schema['items']
        text += f", items: {items.get('type', 'any')}"
    return text


def describe_parameters(schema: dict[str, Any], indent: int = 4) -> str:
    """A plain text rendering of the properties of an object schema,
    used to describe the tool input in the prompt."""
    properties: dict[str, Any] = schema.get('properties', {})
    if not properties:
        return "{}"
    required = set(schema.get('required', []))
    pad = " " * indent
    lines = [
        pad
        + _describe_property(k, v, k in required, indent + 4)
        for k, v in properties.items()
    ]
    return "{\n" + ",\n".join(lines) + "\n" + " " * (indent - 4) + "}"


class Tool(ABC):
    """Abstract interface of tools. Subclasses provide name,
    description and call; name and description may be given as plain
    class attributes."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        pass

    @property
    def parameters(self) -> dict[str, Any]:
        """JSON schema of the tool input."""
        return default_parameters()

    @property
    def strict(self) -> bool:
        """Whether the provider should enforce the schema strictly."""
        return False

    @property
    def usage_limit(self) -> int | None:
        """Maximum number of calls in one run (None: no limit)."""
        return None

    @abstractmethod
    async def call(self, input: Any) -> ToolOutput:
        """Execute the tool on the arguments given by the model.

        Raises:
            ToolError: if the input cannot be parsed or the execution
                fails
        """
        pass

    def normalized_name(self) -> str:
        return normalize_tool_name(self.name)

    def to_plain_description(self) -> str:
        """The description of the tool used in text prompts."""
        return (
            f"> {self.normalized_name()}: {self.description}\n"
            "The input for this tool MUST be in the following format:\n"
            f"{describe_parameters(self.parameters)}"
        )

    def as_openai_tool(self) -> dict[str, Any]:
        """The tool definition in the OpenAI function-calling format."""
        return {
            'type': "function",
            'function': {
                'name': self.normalized_name(),
                'description': self.description,
                'parameters': self.parameters,
                'strict': self.strict,
            },
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
