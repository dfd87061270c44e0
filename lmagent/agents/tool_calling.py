"""
Tool-calling agent: the tool schemas are passed to the model as call
options, and the model requests tools through the native tool calls
of its response. A text response is still interpreted by the
instructor, so that a model may give its final answer as plain text.

Each step of the run is replayed as an assistant message carrying the
tool call, followed by a tool message with the result.
"""

from collections.abc import Sequence
from typing import Any

from langchain_core.messages import BaseMessage
from langchain_core.runnables import Runnable

from lmagent.schemas import AgentStep, tool_call_message, tool_message
from .agent import Agent


class ToolCallingAgent(Agent):
    """An agent for models with native tool calling."""

    def tool_schemas(self) -> list[dict[str, Any]]:
        """The OpenAI schemas of the tools of the agent. Toolboxes are
        reachable through their ListTools tool."""
        return [t.as_openai_tool() for t in self.tools.values()]

    def runnable(self) -> Runnable[Any, BaseMessage]:
        schemas = self.tool_schemas()
        if not schemas:
            return self.llm
        try:
            return self.llm.bind_tools(schemas)
        except NotImplementedError:
            # models without bind_tools receive the schemas as kwargs
            return self.llm.bind(tools=schemas)

    def construct_scratchpad(
        self, steps: Sequence[AgentStep]
    ) -> list[BaseMessage]:
        messages: list[BaseMessage] = []
        for step in steps:
            call = step.tool_call
            messages.append(tool_call_message([call]))
            messages.append(tool_message(step.result, call.id))
        return messages
