"""
Toolbox of the tools offered by a Model Context Protocol server.

The toolbox is given an initialized `mcp.ClientSession`; the session
and its transport are owned by the caller. The list of tools is
fetched from the server the first time it is needed and then reused.

Example:
    ```python
    from mcp import ClientSession
    from mcp.client.streamable_http import streamablehttp_client

    async with streamablehttp_client(url) as (read, write, _):
        async with ClientSession(read, write) as session:
            await session.initialize()
            toolbox = McpToolbox("weather", session)
            agent = (
                ConversationalAgentBuilder()
                .llm(model)
                .toolboxes([toolbox])
                .build()
            )
            ...
    ```
"""

import asyncio
from typing import Any

try:
    from mcp import ClientSession
    from mcp import types
except ImportError as e:
    raise ImportError(
        "MCP toolboxes require the 'mcp' package. "
        "Install it with: pip install mcp"
    ) from e

from lmagent.errors import RemoteToolError, ToolInputError
from lmagent.utils.logging import LoggerBase, get_logger
from .base import Tool, ToolOutput, normalize_tool_name
from .toolbox import Toolbox

logger: LoggerBase = get_logger(__name__)


def content_to_text(content: Any) -> str:
    """A text rendering of an item of the content of a tool result."""
    match content:
        case types.TextContent(text=text):
            return text
        case types.ImageContent(data=data):
            return data
        case types.EmbeddedResource(resource=resource):
            mime = f" ({resource.mimeType})" if resource.mimeType else ""
            match resource:
                case types.TextResourceContents(text=body):
                    pass
                case types.BlobResourceContents(blob=body):
                    pass
                case _:
                    body = ""
            return f"[Resource]({resource.uri}){mime}: {body}"
        case _:
            return str(content)


class McpTool(Tool):
    """A tool executed by a MCP server."""

    def __init__(
        self,
        session: ClientSession,
        name: str,
        description: str,
        parameters: dict[str, Any],
    ) -> None:
        self.session = session
        self._name = name
        self._description = description
        self._parameters = parameters

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def parameters(self) -> dict[str, Any]:
        return self._parameters

    async def call(self, input: Any) -> ToolOutput:
        if input is None:
            input = {}
        if not isinstance(input, dict):
            raise ToolInputError(
                f"Invalid input for {self.name}: expected a JSON object"
            )
        try:
            result = await self.session.call_tool(self.name, input)  # type: ignore
        except Exception as e:
            raise RemoteToolError(
                f"Call to MCP tool {self.name} failed: {e}"
            ) from e

        text = "\n".join(content_to_text(c) for c in result.content)
        if result.isError:
            raise RemoteToolError(text)
        return ToolOutput(data=text)


class McpToolbox(Toolbox):
    """The tools of a MCP server, fetched once and memoized."""

    def __init__(
        self,
        name: str,
        session: ClientSession,
        logger: LoggerBase = logger,
    ) -> None:
        self._name = name
        self.session = session
        self.logger = logger
        self._tools: dict[str, Tool] | None = None
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return self._name

    async def get_tools(self) -> dict[str, Tool]:
        """Fetch the tools from the server on first use.

        Raises:
            RemoteToolError: if the tools cannot be listed
        """
        if self._tools is not None:
            return self._tools
        async with self._lock:
            # another task may have fetched while we waited
            if self._tools is None:
                self._tools = await self._fetch_tools()
        return self._tools

    async def _fetch_tools(self) -> dict[str, Tool]:
        try:
            result = await self.session.list_tools()
        except Exception as e:
            self.logger.error(
                f"Failed to list the tools of {self.name}: {e}"
            )
            raise RemoteToolError(
                f"Failed to list the tools of {self.name}: {e}"
            ) from e

        tools: dict[str, Tool] = {}
        for t in result.tools:
            tool = McpTool(
                self.session,
                t.name,
                t.description or "",
                dict(t.inputSchema),
            )
            tools[normalize_tool_name(t.name)] = tool
        self.logger.info(
            f"Fetched {len(tools)} tools from toolbox {self.name}"
        )
        return tools

    def refresh(self) -> None:
        """Drop the memoized tools; they will be fetched again."""
        self._tools = None
