"""Test conversational memory, the shared memory lock and the diary"""

import asyncio
import unittest

from langchain_core.messages import AIMessage, HumanMessage, ToolMessage

from lmagent.config import AgentSettings
from lmagent.diary import SimpleDiary
from lmagent.memory import (
    SimpleMemory,
    DummyMemory,
    WindowBufferMemory,
    ReadWriteLock,
    SharedMemory,
    create_memory,
)
from lmagent.schemas import AgentStep, ToolCall


def make_step(call_id: str, result: str) -> AgentStep:
    return AgentStep(
        tool_call=ToolCall(id=call_id, name="search", arguments="x"),
        result=result,
    )


class TestMemory(unittest.TestCase):

    def test_simple_memory(self):
        memory = SimpleMemory()
        memory.add_user_message("hi")
        memory.add_ai_message("hello")
        self.assertEqual(len(memory.messages()), 2)
        self.assertEqual(memory.to_string(), "human: hi\nai: hello")
        memory.clear()
        self.assertEqual(memory.messages(), [])

    def test_update(self):
        memory = SimpleMemory()
        memory.update(
            HumanMessage(content="question"),
            [make_step("c1", "r1"), make_step("c2", "r2")],
            "answer",
        )
        messages = memory.messages()
        self.assertEqual(len(messages), 6)
        self.assertIsInstance(messages[0], HumanMessage)
        self.assertIsInstance(messages[1], AIMessage)
        self.assertEqual(messages[1].tool_calls[0]['id'], "c1")  # type: ignore
        self.assertEqual(messages[1].tool_calls[0]['args'], {'input': "x"})  # type: ignore
        self.assertIsInstance(messages[2], ToolMessage)
        self.assertEqual(messages[2].tool_call_id, "c1")  # type: ignore
        self.assertEqual(messages[4].tool_call_id, "c2")  # type: ignore
        self.assertEqual(messages[5].content, "answer")

    def test_dummy_memory(self):
        memory = DummyMemory()
        memory.update(HumanMessage(content="q"), [], "a")
        self.assertEqual(memory.messages(), [])

    def test_window_memory(self):
        memory = WindowBufferMemory(window_size=3)
        for i in range(5):
            memory.add_user_message(str(i))
        self.assertEqual(
            [m.content for m in memory.messages()], ["2", "3", "4"]
        )

    def test_window_eviction_by_message(self):
        # a turn may be partially evicted
        memory = WindowBufferMemory(window_size=2)
        memory.update(HumanMessage(content="q"), [], "a")
        memory.update(HumanMessage(content="q2"), [make_step("c", "r")], "a2")
        messages = memory.messages()
        self.assertIsInstance(messages[0], ToolMessage)
        self.assertEqual(messages[1].content, "a2")

    def test_window_size_invalid(self):
        with self.assertRaises(ValueError):
            WindowBufferMemory(window_size=0)

    def test_create_memory(self):
        self.assertIsInstance(create_memory(), SimpleMemory)
        memory = create_memory(AgentSettings(memory='window', window_size=4))
        self.assertIsInstance(memory, WindowBufferMemory)
        self.assertEqual(memory.window_size, 4)  # type: ignore
        self.assertIsInstance(
            create_memory(AgentSettings(memory='dummy')), DummyMemory
        )


class TestDiary(unittest.TestCase):

    def test_diary(self):
        diary = SimpleDiary()
        diary.push_step(make_step("a", "1"))
        diary.push_step(make_step("b", "2"))
        self.assertEqual(len(diary), 2)
        steps = diary.get_steps()
        self.assertEqual([s.tool_call.id for s in steps], ["a", "b"])
        steps.clear()
        self.assertEqual(len(diary), 2)
        diary.clear()
        self.assertEqual(len(diary), 0)


class TestReadWriteLock(unittest.IsolatedAsyncioTestCase):

    async def test_concurrent_readers(self):
        lock = ReadWriteLock()
        both_inside = asyncio.Event()
        inside = 0

        async def reader():
            nonlocal inside
            async with lock.read():
                inside += 1
                if inside == 2:
                    both_inside.set()
                await asyncio.wait_for(both_inside.wait(), timeout=1)

        await asyncio.gather(reader(), reader())
        self.assertEqual(lock.readers, 0)

    async def test_writer_excludes_readers(self):
        lock = ReadWriteLock()
        events: list[str] = []

        async def writer():
            async with lock.write():
                events.append("write start")
                await asyncio.sleep(0.01)
                events.append("write end")

        async def reader():
            await asyncio.sleep(0)
            async with lock.read():
                events.append("read")

        await asyncio.gather(writer(), reader())
        self.assertEqual(events, ["write start", "write end", "read"])
        self.assertFalse(lock.writing)

    async def test_waiting_writer_blocks_new_readers(self):
        lock = ReadWriteLock()
        events: list[str] = []
        first_reader_in = asyncio.Event()

        async def first_reader():
            async with lock.read():
                first_reader_in.set()
                await asyncio.sleep(0.02)
                events.append("first read end")

        async def writer():
            await first_reader_in.wait()
            async with lock.write():
                events.append("write")

        async def late_reader():
            await first_reader_in.wait()
            await asyncio.sleep(0.005)
            async with lock.read():
                events.append("late read")

        await asyncio.gather(first_reader(), writer(), late_reader())
        self.assertEqual(events, ["first read end", "write", "late read"])


class TestSharedMemory(unittest.IsolatedAsyncioTestCase):

    async def test_read_write(self):
        shared = SharedMemory(SimpleMemory())
        async with shared.write() as memory:
            memory.add_user_message("hi")
        async with shared.read() as memory:
            self.assertEqual(len(memory.messages()), 1)


if __name__ == "__main__":
    unittest.main()
