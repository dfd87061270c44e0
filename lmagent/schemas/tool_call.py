"""
Tool calls requested by the model and the steps that record them.
"""

import json
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from langchain_core.messages.tool import (
    ToolCall as LCToolCall,
    tool_call as lc_tool_call,
)


def new_tool_call_id() -> str:
    """A fresh random identifier for a tool call."""
    return uuid4().hex


class ToolCall(BaseModel):
    """A tool call requested by the model. The id is preserved from
    the request to the tool result, so that results can be correlated
    to calls in the scratchpad and in memory."""

    id: str = Field(default_factory=new_tool_call_id)
    name: str
    arguments: Any = None

    model_config = ConfigDict(frozen=True)

    @field_validator('id', mode='before')
    @classmethod
    def _generate_missing_id(cls, value: Any) -> Any:
        if value is None or value == "":
            return new_tool_call_id()
        return value

    def __str__(self) -> str:
        return json.dumps(
            {'action': self.name, 'action_input': self.arguments},
            indent=2,
            ensure_ascii=False,
        )

    def to_langchain(self) -> LCToolCall:
        """The call in the form used by LangChain messages. Arguments
        that are not a JSON object are stored under the 'input' key."""
        args = self.arguments
        if not isinstance(args, dict):
            args = {'input': args}
        return lc_tool_call(name=self.name, args=args, id=self.id)

    @classmethod
    def from_langchain(cls, call: LCToolCall) -> 'ToolCall':
        return cls(
            id=call.get('id') or "",
            name=call['name'],
            arguments=call.get('args'),
        )


class AgentStep(BaseModel):
    """One executed tool call and its result."""

    tool_call: ToolCall
    result: str
    summary: str | None = None

    model_config = ConfigDict(frozen=True)
