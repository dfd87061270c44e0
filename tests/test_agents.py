"""Test agents, their prompts and their builders"""

import unittest
from collections.abc import Iterator
from typing import Any

from pydantic import Field
from langchain_core.language_models.fake_chat_models import (
    GenericFakeChatModel,
)
from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)

from lmagent.agents import (
    ConversationalAgent,
    ConversationalAgentBuilder,
    ToolCallingAgent,
    ToolCallingAgentBuilder,
    DEFAULT_SYSTEM_PROMPT,
    FORCE_FINAL_ANSWER,
    ultimatum_messages,
)
from lmagent.config import Settings
from lmagent.errors import AgentBuildError, LLMError, PromptError, RemoteToolError
from lmagent.output_parser import Qwen3Instructor
from lmagent.schemas import (
    AgentAction,
    AgentFinish,
    AgentInput,
    AgentStep,
    TokenUsage,
    ToolCall,
)
from lmagent.tools import FunctionTool, SimpleToolbox, Toolbox, Tool
from lmagent.utils import LoglistLogger
from lmagent.language_models.message_iterator import yield_script


class RecordingChatModel(GenericFakeChatModel):
    """A fake chat model that records the prompts it receives."""

    prompts: list[list[BaseMessage]] = Field(default_factory=list)

    def _generate(self, messages, stop=None, run_manager=None, **kwargs):
        self.prompts.append(list(messages))
        return super()._generate(messages, stop, run_manager, **kwargs)


def scripted_model(*responses: Any) -> RecordingChatModel:
    return RecordingChatModel(messages=yield_script(responses))


def failing_messages() -> Iterator[str]:
    raise ConnectionError("provider unreachable")
    yield ""


def search(query: str) -> str:
    """Search the web"""
    return f"results for {query}"


def calculator(expression: str) -> str:
    """Evaluate an arithmetic expression"""
    return "4"


class BrokenToolbox(Toolbox):

    @property
    def name(self) -> str:
        return "remote"

    async def get_tools(self) -> dict[str, Tool]:
        raise RemoteToolError("connection refused")


class TestBuilders(unittest.TestCase):

    def test_missing_llm(self):
        with self.assertRaises(AgentBuildError) as cm:
            ConversationalAgentBuilder().build()
        self.assertEqual(cm.exception.field, "llm")

    def test_duplicate_tools(self):
        builder = ConversationalAgentBuilder().llm(scripted_model("x"))
        builder.tools([FunctionTool(search), FunctionTool(search)])
        with self.assertRaises(ValueError):
            builder.build()

    def test_conversational_system_prompt(self):
        agent = (
            ConversationalAgentBuilder()
            .llm(scripted_model("x"))
            .tools([FunctionTool(search)])
            .toolboxes([SimpleToolbox("math", [FunctionTool(calculator)])])
            .system_prompt("You are a researcher.")
            .build()
        )
        self.assertIsInstance(agent, ConversationalAgent)
        self.assertEqual(
            set(agent.tools), {"search", "list_tools_in_math"}
        )
        messages = agent.prompt_messages(AgentInput(variables={'input': "hi"}))
        self.assertIsInstance(messages[0], SystemMessage)
        system = str(messages[0].content)
        self.assertTrue(system.startswith("You are a researcher."))
        self.assertIn("<INSTRUCTIONS>", system)
        self.assertIn("> search: Search the web", system)
        self.assertIn("list_tools_in_math", system)
        self.assertEqual(messages[1], HumanMessage(content="hi"))

    def test_default_prompts(self):
        agent = ToolCallingAgentBuilder().llm(scripted_model("x")).build()
        self.assertIsInstance(agent, ToolCallingAgent)
        messages = agent.prompt_messages(AgentInput(variables={'input': "hi"}))
        self.assertEqual(messages[0].content, DEFAULT_SYSTEM_PROMPT)
        self.assertEqual(len(messages), 2)

    def test_initial_prompt_template(self):
        agent = (
            ConversationalAgentBuilder()
            .llm(scripted_model("x"))
            .initial_prompt("Translate to {language}: {input}")
            .build()
        )
        messages = agent.prompt_messages(
            AgentInput(variables={'input': "cat", 'language': "Italian"})
        )
        self.assertEqual(messages[-1].content, "Translate to Italian: cat")

    def test_missing_prompt_variable(self):
        agent = (
            ConversationalAgentBuilder()
            .llm(scripted_model("x"))
            .initial_prompt("Translate to {language}: {input}")
            .build()
        )
        with self.assertRaises(PromptError):
            agent.prompt_messages(AgentInput(variables={'input': "cat"}))

    def test_from_settings(self):
        settings = Settings(
            model={
                'model': "Debug/agent",
                'provider_params': {'message': '{"final_answer": "ok"}'},
            },
            agent={'system_prompt': "Be brief.", 'instructor': 'qwen3'},
        )
        agent = ConversationalAgentBuilder().from_settings(settings).build()
        self.assertIsInstance(agent.instructor, Qwen3Instructor)
        messages = agent.prompt_messages(AgentInput(variables={'input': "hi"}))
        self.assertTrue(str(messages[0].content).startswith("Be brief."))
        self.assertIn("<tools>", str(messages[0].content))


class TestPrompt(unittest.TestCase):

    def test_placeholders(self):
        agent = ConversationalAgentBuilder().llm(scripted_model("x")).build()
        agent_input = AgentInput(
            variables={'input': "now"},
            chat_history=[HumanMessage(content="before"), AIMessage(content="ok")],
            ultimatum=ultimatum_messages(),
        )
        messages = agent.prompt_messages(agent_input)
        self.assertEqual(
            [m.content for m in messages[1:]],
            ["before", "ok", "now", "", FORCE_FINAL_ANSWER],
        )


class TestConversationalAgent(unittest.IsolatedAsyncioTestCase):

    async def test_plan_final_answer(self):
        model = scripted_model(
            AIMessage(
                content='{"final_answer": "Paris"}',
                usage_metadata={
                    'input_tokens': 10,
                    'output_tokens': 5,
                    'total_tokens': 15,
                },
            )
        )
        agent = ConversationalAgentBuilder().llm(model).build()
        plan = await agent.plan([], AgentInput(variables={'input': "capital?"}))
        self.assertEqual(plan.output, AgentFinish(final_answer="Paris"))
        self.assertEqual(
            plan.usage, TokenUsage(prompt_tokens=10, completion_tokens=5)
        )

    async def test_plan_tool_call(self):
        model = scripted_model('{"action": "search", "action_input": "x"}')
        agent = (
            ConversationalAgentBuilder()
            .llm(model)
            .tools([FunctionTool(search)])
            .build()
        )
        plan = await agent.plan([], AgentInput(variables={'input': "q"}))
        assert isinstance(plan.output, AgentAction)
        self.assertEqual(plan.output.tool_calls[0].name, "search")
        self.assertIsNone(plan.usage)

    async def test_native_tool_calls(self):
        model = scripted_model(
            AIMessage(
                content="",
                tool_calls=[
                    {'name': "search", 'args': {'query': "x"}, 'id': "c1"}
                ],
            )
        )
        agent = ConversationalAgentBuilder().llm(model).build()
        plan = await agent.plan([], AgentInput(variables={'input': "q"}))
        self.assertEqual(
            plan.output,
            AgentAction(
                tool_calls=[
                    ToolCall(id="c1", name="search", arguments={'query': "x"})
                ]
            ),
        )

    async def test_refusal(self):
        model = scripted_model(
            AIMessage(content="", additional_kwargs={'refusal': "I can't"})
        )
        agent = ConversationalAgentBuilder().llm(model).build()
        with self.assertRaises(LLMError):
            await agent.plan([], AgentInput(variables={'input': "q"}))

    async def test_provider_error(self):
        model = GenericFakeChatModel(messages=failing_messages())
        agent = ConversationalAgentBuilder().llm(model).build()
        with self.assertRaises(LLMError):
            await agent.plan([], AgentInput(variables={'input': "q"}))

    async def test_scratchpad(self):
        model = scripted_model('{"final_answer": "done"}')
        agent = ConversationalAgentBuilder().llm(model).build()
        step = AgentStep(
            tool_call=ToolCall(id="c1", name="search", arguments="x"),
            result="found it",
        )
        await agent.plan([step], AgentInput(variables={'input': "q"}))
        prompt = model.prompts[0]
        self.assertEqual(prompt[-2], AIMessage(content=str(step.tool_call)))
        self.assertEqual(prompt[-1], HumanMessage(content="found it"))

    async def test_get_tool_order(self):
        local_search = FunctionTool(search)
        other_search = FunctionTool(search, description="other")
        logger = LoglistLogger()
        agent = (
            ConversationalAgentBuilder()
            .llm(scripted_model("x"))
            .tools([local_search])
            .toolboxes(
                [
                    BrokenToolbox(),
                    SimpleToolbox("a", [other_search, FunctionTool(calculator)]),
                    SimpleToolbox("b", [FunctionTool(calculator, description="b")]),
                ]
            )
            .logger(logger)
            .build()
        )
        self.assertIs(await agent.get_tool("Search"), local_search)
        calc = await agent.get_tool("calculator")
        assert calc is not None
        self.assertEqual(calc.description, "Evaluate an arithmetic expression")
        self.assertIsNone(await agent.get_tool("missing"))
        self.assertTrue(
            any("remote" in log for log in logger.get_logs(level=1))
        )


class TestToolCallingAgent(unittest.IsolatedAsyncioTestCase):

    async def test_scratchpad(self):
        model = scripted_model('{"final_answer": "done"}')
        agent = (
            ToolCallingAgentBuilder()
            .llm(model)
            .tools([FunctionTool(search)])
            .build()
        )
        step = AgentStep(
            tool_call=ToolCall(id="c1", name="search", arguments={'query': "x"}),
            result="found it",
        )
        plan = await agent.plan([step], AgentInput(variables={'input': "q"}))
        self.assertEqual(plan.output, AgentFinish(final_answer="done"))
        prompt = model.prompts[0]
        self.assertIsInstance(prompt[-2], AIMessage)
        self.assertEqual(prompt[-2].tool_calls[0]['id'], "c1")  # type: ignore
        self.assertIsInstance(prompt[-1], ToolMessage)
        self.assertEqual(prompt[-1].tool_call_id, "c1")  # type: ignore

    def test_no_tool_suffix(self):
        agent = (
            ToolCallingAgentBuilder()
            .llm(scripted_model("x"))
            .tools([FunctionTool(search)])
            .system_prompt("Be helpful.")
            .build()
        )
        messages = agent.prompt_messages(AgentInput(variables={'input': "q"}))
        self.assertEqual(messages[0].content, "Be helpful.")
        schemas = agent.tool_schemas()
        self.assertEqual(schemas[0]['function']['name'], "search")


if __name__ == "__main__":
    unittest.main()
