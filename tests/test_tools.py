"""Test tools, typed tools and the LangChain tool adapter"""

import asyncio
import threading
import unittest
from typing import Any

from pydantic import BaseModel
from langchain_core.tools import tool as lc_tool, ToolException

from lmagent.errors import ToolExecutionError, ToolInputError
from lmagent.tools import (
    Tool,
    ToolOutput,
    ToolFunction,
    FunctionTool,
    LangChainTool,
    normalize_tool_name,
    describe_parameters,
)


class Shout(Tool):
    name = "Shout Loud"
    description = "Repeats the input in upper case"

    async def call(self, input: Any) -> ToolOutput:
        return ToolOutput.from_value(str(input).upper())


class SumInput(BaseModel):
    a: int
    b: int = 0


class Sum(ToolFunction):
    name = "sum"
    description = "Adds two integers"
    input_model = SumInput
    limit = 2

    async def run(self, input: SumInput) -> int:
        return input.a + input.b


class CityInput(BaseModel):
    city: str


class Weather(ToolFunction):
    name = "weather"
    description = "The weather in a city"
    input_model = CityInput

    def run(self, input: CityInput) -> dict[str, str]:
        return {'city': input.city, 'sky': "sunny"}


@lc_tool
def multiply(a: int, b: int) -> int:
    """Multiply two integers."""
    return a * b


@lc_tool
def broken(text: str) -> str:
    """Always fails."""
    raise ToolException("out of order")


class TestTool(unittest.IsolatedAsyncioTestCase):

    def test_normalize_tool_name(self):
        self.assertEqual(normalize_tool_name("Web Search"), "web_search")

    def test_defaults(self):
        tool = Shout()
        self.assertEqual(tool.normalized_name(), "shout_loud")
        self.assertFalse(tool.strict)
        self.assertIsNone(tool.usage_limit)
        self.assertEqual(tool.parameters['required'], ['input'])

    def test_plain_description(self):
        description = Shout().to_plain_description()
        self.assertTrue(
            description.startswith(
                "> shout_loud: Repeats the input in upper case\n"
            )
        )
        self.assertIn('"input": (string, required)', description)

    def test_openai_tool(self):
        schema = Shout().as_openai_tool()
        self.assertEqual(schema['type'], "function")
        self.assertEqual(schema['function']['name'], "shout_loud")

    async def test_call(self):
        output = await Shout().call("hi")
        self.assertEqual(str(output), "HI")


class TestToolOutput(unittest.TestCase):

    def test_list(self):
        output = ToolOutput(data=["a", "b"])
        self.assertEqual(str(output), "a\n---\nb")

    def test_from_value(self):
        self.assertEqual(str(ToolOutput.from_value(None)), "")
        self.assertEqual(str(ToolOutput.from_value(3)), "3")
        self.assertEqual(
            str(ToolOutput.from_value({'a': 1})), '{\n  "a": 1\n}'
        )
        output = ToolOutput(data="x", summary="s")
        self.assertIs(ToolOutput.from_value(output), output)


class TestDescribeParameters(unittest.TestCase):

    def test_nested(self):
        schema = {
            'type': "object",
            'properties': {
                'query': {'type': "string", 'description': "the query"},
                'limit': {'type': "integer"},
            },
            'required': ['query'],
        }
        text = describe_parameters(schema)
        self.assertIn('"query": (string, required), the query', text)
        self.assertIn('"limit": (integer, optional)', text)

    def test_empty(self):
        self.assertEqual(describe_parameters({'type': "object"}), "{}")


class TestToolFunction(unittest.IsolatedAsyncioTestCase):

    async def test_dict_input(self):
        output = await Sum().call({'a': 1, 'b': 2})
        self.assertEqual(str(output), "3")

    async def test_json_string_input(self):
        output = await Sum().call('{"a": 4, "b": 5}')
        self.assertEqual(str(output), "9")

    async def test_invalid_input(self):
        with self.assertRaises(ToolInputError):
            await Sum().call({'b': 2})

    async def test_bare_string_single_field(self):
        output = await Weather().call("Rome")
        self.assertIn('"city": "Rome"', str(output))

    async def test_bare_string_many_fields(self):
        with self.assertRaises(ToolInputError):
            await Sum().call("one")

    def test_parameters(self):
        parameters = Sum().parameters
        self.assertNotIn('title', parameters)
        self.assertEqual(parameters['required'], ['a'])
        self.assertEqual(Sum().usage_limit, 2)


class TestFunctionTool(unittest.IsolatedAsyncioTestCase):

    async def test_sync_function(self):
        def reverse(text: str) -> str:
            """Reverse the text"""
            return text[::-1]

        tool = FunctionTool(reverse, usage_limit=1)
        self.assertEqual(tool.name, "reverse")
        self.assertEqual(tool.description, "Reverse the text")
        self.assertEqual(tool.usage_limit, 1)
        self.assertEqual(str(await tool.call({'input': "abc"})), "cba")

    async def test_async_function(self):
        async def echo(text: str) -> str:
            return text

        tool = FunctionTool(echo, name="Echo", description="Echoes")
        self.assertEqual(str(await tool.call("hi")), "hi")
        self.assertEqual(tool.normalized_name(), "echo")

    async def test_blocking_function_runs_in_thread(self):
        started = threading.Event()
        release = threading.Event()

        def wait(text: str) -> str:
            started.set()
            release.wait(timeout=5)
            return "released" if release.is_set() else "timed out"

        async def unblock() -> None:
            while not started.is_set():
                await asyncio.sleep(0.01)
            release.set()

        output, _ = await asyncio.gather(FunctionTool(wait).call("x"), unblock())
        self.assertEqual(str(output), "released")


class TestLangChainTool(unittest.IsolatedAsyncioTestCase):

    async def test_call(self):
        tool = LangChainTool(multiply)
        self.assertEqual(tool.name, "multiply")
        self.assertEqual(str(await tool.call({'a': 3, 'b': 4})), "12")

    def test_parameters(self):
        parameters = LangChainTool(multiply).parameters
        self.assertEqual(set(parameters['properties']), {'a', 'b'})

    async def test_invalid_input(self):
        with self.assertRaises(ToolInputError):
            await LangChainTool(multiply).call({'a': "x"})

    async def test_tool_exception(self):
        with self.assertRaises(ToolExecutionError):
            await LangChainTool(broken).call({'text': "x"})


if __name__ == "__main__":
    unittest.main()
