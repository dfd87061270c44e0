"""Test token usage, tool calls and message helpers"""

import unittest

from pydantic import ValidationError
from langchain_core.messages import AIMessage, HumanMessage, ToolMessage

from lmagent.schemas import (
    TokenUsage,
    merge_options,
    ToolCall,
    AgentStep,
    AgentInput,
    message_text,
    tool_call_message,
    tool_message,
    messages_to_string,
)


class TestTokenUsage(unittest.TestCase):

    def test_total_derived(self):
        usage = TokenUsage(prompt_tokens=10, completion_tokens=5)
        self.assertEqual(usage.total_tokens, 15)

    def test_total_mismatch(self):
        with self.assertRaises(ValidationError):
            TokenUsage(prompt_tokens=10, completion_tokens=5, total_tokens=3)

    def test_merge(self):
        a = TokenUsage(prompt_tokens=1, completion_tokens=2)
        b = TokenUsage(prompt_tokens=10, completion_tokens=20)
        self.assertEqual(
            a.merge(b),
            TokenUsage(prompt_tokens=11, completion_tokens=22),
        )

    def test_merge_commutative_associative(self):
        a = TokenUsage(prompt_tokens=1, completion_tokens=2)
        b = TokenUsage(prompt_tokens=3, completion_tokens=5)
        c = TokenUsage(prompt_tokens=7, completion_tokens=11)
        self.assertEqual(a.merge(b), b.merge(a))
        self.assertEqual(a.merge(b.merge(c)), a.merge(b).merge(c))

    def test_merge_options(self):
        a = TokenUsage(prompt_tokens=1, completion_tokens=2)
        self.assertIsNone(merge_options(None, None))
        self.assertEqual(merge_options(None, a), a)
        self.assertEqual(merge_options(a, None), a)
        self.assertEqual(merge_options(a, a).total_tokens, 6)  # type: ignore

    def test_from_usage_metadata(self):
        usage = TokenUsage.from_usage_metadata(
            {'input_tokens': 7, 'output_tokens': 3, 'total_tokens': 12}
        )
        self.assertEqual(
            usage, TokenUsage(prompt_tokens=7, completion_tokens=3)
        )
        self.assertIsNone(TokenUsage.from_usage_metadata(None))


class TestToolCall(unittest.TestCase):

    def test_id_generated(self):
        call = ToolCall(name="search")
        self.assertTrue(call.id)
        self.assertNotEqual(call.id, ToolCall(name="search").id)

    def test_empty_id_replaced(self):
        self.assertTrue(ToolCall(id="", name="search").id)
        self.assertTrue(ToolCall(id=None, name="search").id)  # type: ignore

    def test_str(self):
        call = ToolCall(name="search", arguments={'query': "x"})
        self.assertEqual(
            str(call),
            '{\n  "action": "search",\n  "action_input": {\n'
            '    "query": "x"\n  }\n}',
        )

    def test_to_langchain_wraps_scalar(self):
        call = ToolCall(id="c1", name="search", arguments="x")
        lc_call = call.to_langchain()
        self.assertEqual(lc_call['args'], {'input': "x"})
        self.assertEqual(lc_call['id'], "c1")
        self.assertEqual(lc_call['name'], "search")

    def test_from_langchain(self):
        call = ToolCall.from_langchain(
            {'name': "search", 'args': {'q': 1}, 'id': None}
        )
        self.assertEqual(call.arguments, {'q': 1})
        self.assertTrue(call.id)


class TestAgentInput(unittest.TestCase):

    def test_prompt_args(self):
        agent_input = AgentInput(variables={'input': "hi"})
        args = agent_input.to_prompt_args()
        self.assertEqual(args['input'], "hi")
        self.assertEqual(args['chat_history'], [])
        self.assertEqual(args['agent_scratchpad'], [])
        self.assertEqual(args['ultimatum'], [])

    def test_human_message(self):
        agent_input = AgentInput(variables={'input': "hi", 'x': 1})
        self.assertEqual(agent_input.human_message().content, "hi")
        agent_input = AgentInput(variables={'a': "one", 'b': "two"})
        self.assertEqual(agent_input.human_message().content, "one\ntwo")


class TestMessages(unittest.TestCase):

    def test_message_text_blocks(self):
        message = AIMessage(
            content=[
                {'type': "text", 'text': "Hello "},
                {'type': "image_url", 'image_url': {'url': "x"}},
                {'type': "text", 'text': "world"},
            ]
        )
        self.assertEqual(message_text(message), "Hello world")

    def test_tool_messages(self):
        call = ToolCall(id="c1", name="search", arguments={'q': "x"})
        ai = tool_call_message([call])
        self.assertEqual(ai.tool_calls[0]['id'], "c1")
        result = tool_message("found", "c1")
        self.assertIsInstance(result, ToolMessage)
        self.assertEqual(result.tool_call_id, "c1")

    def test_messages_to_string(self):
        call = ToolCall(id="c1", name="search", arguments={'q': "x"})
        text = messages_to_string(
            [HumanMessage(content="hi"), tool_call_message([call])]
        )
        self.assertTrue(text.startswith("human: hi\nTool call:\n"))
        self.assertIn('"name": "search"', text)

    def test_agent_step(self):
        step = AgentStep(tool_call=ToolCall(name="a"), result="r")
        self.assertIsNone(step.summary)


if __name__ == "__main__":
    unittest.main()
