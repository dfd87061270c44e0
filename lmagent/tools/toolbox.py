"""
Toolboxes: collections of tools resolved at run time.

Differently from the tools registered with an agent, the content of a
toolbox may not be known when the agent is built (for example, the
tools offered by a remote server). Agents look up a toolbox when the
model names a tool they do not have, and advertise the toolbox to the
model through a `ListTools` tool that returns the descriptions of its
members.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from lmagent.errors import ToolNotFoundError
from .base import Tool, ToolOutput, LIST_SEPARATOR, normalize_tool_name


class Toolbox(ABC):
    """Abstract interface of a toolbox."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def get_tools(self) -> dict[str, Tool]:
        """The tools of the toolbox, keyed by normalized name."""
        pass

    async def get_tool(self, name: str) -> Tool:
        """The tool with the given name (normalized before lookup).

        Raises:
            ToolNotFoundError: if the toolbox has no such tool
        """
        tools = await self.get_tools()
        tool = tools.get(normalize_tool_name(name))
        if tool is None:
            raise ToolNotFoundError(name)
        return tool

    async def call_tool(self, name: str, input: Any) -> ToolOutput:
        tool = await self.get_tool(name)
        return await tool.call(input)


class SimpleToolbox(Toolbox):
    """A toolbox holding a fixed set of tools."""

    def __init__(self, name: str, tools: Iterable[Tool]) -> None:
        self._name = name
        self.tools: dict[str, Tool] = {
            t.normalized_name(): t for t in tools
        }

    @property
    def name(self) -> str:
        return self._name

    async def get_tools(self) -> dict[str, Tool]:
        return self.tools


class ListTools(Tool):
    """Lists the tools of a toolbox, with their input format."""

    def __init__(self, toolbox: Toolbox) -> None:
        self.toolbox = toolbox

    @property
    def name(self) -> str:
        return f"List tools in {self.toolbox.name}"

    @property
    def description(self) -> str:
        return f"List all tools in the toolbox {self.toolbox.name}"

    @property
    def parameters(self) -> dict[str, Any]:
        return {'type': "object", 'properties': {}}

    async def call(self, input: Any) -> ToolOutput:
        tools = await self.toolbox.get_tools()
        return ToolOutput(
            data=LIST_SEPARATOR.join(
                t.to_plain_description() for t in tools.values()
            )
        )
