"""Test toolboxes, including the MCP toolbox on a fake session"""

import asyncio
import unittest
from typing import Any

from mcp import types

from lmagent.errors import RemoteToolError, ToolInputError, ToolNotFoundError
from lmagent.tools import FunctionTool, SimpleToolbox, ListTools
from lmagent.tools.mcp import McpToolbox, content_to_text
from lmagent.utils import LoglistLogger


def upper(text: str) -> str:
    """Upper case"""
    return text.upper()


def lower(text: str) -> str:
    """Lower case"""
    return text.lower()


class FakeSession:
    """Stands in for an initialized mcp.ClientSession."""

    def __init__(self, fail_listing: bool = False) -> None:
        self.fail_listing = fail_listing
        self.list_calls = 0
        self.calls: list[tuple[str, Any]] = []

    async def list_tools(self) -> types.ListToolsResult:
        self.list_calls += 1
        await asyncio.sleep(0)
        if self.fail_listing:
            raise ConnectionError("server down")
        return types.ListToolsResult(
            tools=[
                types.Tool(
                    name="Get Weather",
                    description="The weather in a city",
                    inputSchema={
                        'type': "object",
                        'properties': {'city': {'type': "string"}},
                        'required': ['city'],
                    },
                ),
            ]
        )

    async def call_tool(
        self, name: str, arguments: dict[str, Any] | None = None
    ) -> types.CallToolResult:
        self.calls.append((name, arguments))
        if arguments and arguments.get('city') == "Atlantis":
            return types.CallToolResult(
                content=[types.TextContent(type="text", text="unknown city")],
                isError=True,
            )
        return types.CallToolResult(
            content=[types.TextContent(type="text", text="sunny")],
            isError=False,
        )


class TestSimpleToolbox(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.toolbox = SimpleToolbox(
            "Text", [FunctionTool(upper), FunctionTool(lower)]
        )

    async def test_get_tool(self):
        tool = await self.toolbox.get_tool("UPPER")
        self.assertEqual(tool.name, "upper")

    async def test_missing_tool(self):
        with self.assertRaises(ToolNotFoundError) as cm:
            await self.toolbox.get_tool("reverse")
        self.assertEqual(cm.exception.name, "reverse")

    async def test_call_tool(self):
        output = await self.toolbox.call_tool("lower", "ABC")
        self.assertEqual(str(output), "abc")

    async def test_list_tools(self):
        tool = ListTools(self.toolbox)
        self.assertEqual(tool.normalized_name(), "list_tools_in_text")
        output = str(await tool.call({}))
        self.assertIn("> upper: Upper case", output)
        self.assertIn("\n---\n> lower: Lower case", output)


class TestMcpToolbox(unittest.IsolatedAsyncioTestCase):

    async def test_tools_memoized(self):
        session = FakeSession()
        toolbox = McpToolbox("weather", session)  # type: ignore
        tools = await asyncio.gather(
            toolbox.get_tools(), toolbox.get_tools()
        )
        self.assertEqual(session.list_calls, 1)
        self.assertIn("get_weather", tools[0])
        await toolbox.get_tool("Get Weather")
        self.assertEqual(session.list_calls, 1)

    async def test_refresh(self):
        session = FakeSession()
        toolbox = McpToolbox("weather", session)  # type: ignore
        await toolbox.get_tools()
        toolbox.refresh()
        await toolbox.get_tools()
        self.assertEqual(session.list_calls, 2)

    async def test_call(self):
        session = FakeSession()
        toolbox = McpToolbox("weather", session)  # type: ignore
        output = await toolbox.call_tool("get_weather", {'city': "Rome"})
        self.assertEqual(str(output), "sunny")
        self.assertEqual(session.calls, [("Get Weather", {'city': "Rome"})])

    async def test_call_error(self):
        toolbox = McpToolbox("weather", FakeSession())  # type: ignore
        with self.assertRaises(RemoteToolError):
            await toolbox.call_tool("get_weather", {'city': "Atlantis"})

    async def test_call_non_object_input(self):
        toolbox = McpToolbox("weather", FakeSession())  # type: ignore
        with self.assertRaises(ToolInputError):
            await toolbox.call_tool("get_weather", "Rome")

    async def test_listing_failure(self):
        logger = LoglistLogger()
        toolbox = McpToolbox(
            "weather", FakeSession(fail_listing=True), logger=logger  # type: ignore
        )
        with self.assertRaises(RemoteToolError):
            await toolbox.get_tools()
        self.assertEqual(logger.count_logs(level=2), 1)

    def test_content_to_text(self):
        self.assertEqual(
            content_to_text(types.TextContent(type="text", text="a")), "a"
        )


if __name__ == "__main__":
    unittest.main()
