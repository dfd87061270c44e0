"""
Conversational memory: the messages exchanged in previous runs of the
executor, loaded into the 'chat_history' placeholder of the prompt.

Memory is written once per run, when the run completes, through the
`update` method: the user message, the tool calls with their results,
and the final answer.

Implementations:

- SimpleMemory: keeps all messages.
- WindowBufferMemory: keeps the last `window_size` messages. Eviction
    is one message at a time; a turn made of several messages may
    therefore be partially evicted.
- DummyMemory: keeps nothing, for stateless agents.
"""

from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Sequence

from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
)

from lmagent.config.config import AgentSettings
from lmagent.schemas import (
    AgentStep,
    messages_to_string,
    tool_call_message,
    tool_message,
)


class BaseMemory(ABC):
    """Abstract interface of conversational memories."""

    @abstractmethod
    def messages(self) -> list[BaseMessage]:
        """The stored messages, oldest first."""
        pass

    @abstractmethod
    def add_message(self, message: BaseMessage) -> None:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    def add_user_message(self, content: str) -> None:
        self.add_message(HumanMessage(content=content))

    def add_ai_message(self, content: str) -> None:
        self.add_message(AIMessage(content=content))

    def to_string(self) -> str:
        """A human-readable transcript, one message per line."""
        return messages_to_string(self.messages())

    def update(
        self,
        human_message: BaseMessage,
        steps: Sequence[AgentStep],
        final_answer: str,
    ) -> None:
        """Record a completed run: the user message, each tool call
        followed by its result, and the final answer."""
        self.add_message(human_message)
        for step in steps:
            self.add_message(tool_call_message([step.tool_call]))
            self.add_message(tool_message(step.result, step.tool_call.id))
        self.add_message(AIMessage(content=final_answer))

    def __str__(self) -> str:
        return self.to_string()


class SimpleMemory(BaseMemory):
    """Unbounded memory."""

    def __init__(self) -> None:
        self._messages: list[BaseMessage] = []

    def messages(self) -> list[BaseMessage]:
        return list(self._messages)

    def add_message(self, message: BaseMessage) -> None:
        self._messages.append(message)

    def clear(self) -> None:
        self._messages.clear()


class DummyMemory(BaseMemory):
    """A memory that stores nothing."""

    def messages(self) -> list[BaseMessage]:
        return []

    def add_message(self, message: BaseMessage) -> None:
        pass

    def clear(self) -> None:
        pass


class WindowBufferMemory(BaseMemory):
    """Keeps the last window_size messages."""

    def __init__(self, window_size: int = 10) -> None:
        if window_size < 1:
            raise ValueError("window_size must be at least 1")
        self.window_size = window_size
        self._messages: deque[BaseMessage] = deque(maxlen=window_size)

    def messages(self) -> list[BaseMessage]:
        return list(self._messages)

    def add_message(self, message: BaseMessage) -> None:
        # the deque drops the oldest message when full
        self._messages.append(message)

    def clear(self) -> None:
        self._messages.clear()


def create_memory(settings: AgentSettings | None = None) -> BaseMemory:
    """Create the memory specified by the agent settings."""
    if settings is None:
        settings = AgentSettings()
    match settings.memory:
        case 'simple':
            return SimpleMemory()
        case 'window':
            return WindowBufferMemory(settings.window_size)
        case 'dummy':
            return DummyMemory()
        case _:
            raise ValueError(f"Invalid memory kind: {settings.memory}")
