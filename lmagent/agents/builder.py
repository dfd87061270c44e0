"""
Fluent builders of agents.

Example:

```python
from lmagent.agents import ConversationalAgentBuilder
from lmagent.language_models import create_model_from_spec

agent = (
    ConversationalAgentBuilder()
    .llm(create_model_from_spec("OpenAI/gpt-4.1-mini"))
    .tools([search_tool])
    .system_prompt("You are a helpful research assistant.")
    .build()
)
```

`from_settings` fills the builder from a Settings object (the language
model, the prompts and the instructor). Each toolbox added to the
builder is advertised to the model through a ListTools tool.

Behaviour:
    build() raises AgentBuildError naming the first missing field, and
    ValueError if two tools have the same normalized name.
"""

from collections.abc import Sequence
from typing import Self

from langchain_core.language_models.chat_models import BaseChatModel

from lmagent.config import Settings
from lmagent.errors import AgentBuildError
from lmagent.language_models import create_model_from_settings
from lmagent.output_parser import Instructor, DefaultInstructor, get_instructor
from lmagent.tools import Tool, Toolbox, ListTools
from lmagent.utils.logging import LoggerBase, get_logger
from .agent import Agent
from .conversational import ConversationalAgent
from .tool_calling import ToolCallingAgent
from .prompts import DEFAULT_SYSTEM_PROMPT, DEFAULT_INITIAL_PROMPT, create_prompt

logger: LoggerBase = get_logger(__name__)


class AgentBuilder:
    """Base of the agent builders."""

    def __init__(self) -> None:
        self._llm: BaseChatModel | None = None
        self._tools: list[Tool] = []
        self._toolboxes: list[Toolbox] = []
        self._system_prompt: str = DEFAULT_SYSTEM_PROMPT
        self._initial_prompt: str = DEFAULT_INITIAL_PROMPT
        self._instructor: Instructor | None = None
        self._logger: LoggerBase = logger

    def llm(self, llm: BaseChatModel) -> Self:
        self._llm = llm
        return self

    def tools(self, tools: Sequence[Tool]) -> Self:
        self._tools.extend(tools)
        return self

    def toolboxes(self, toolboxes: Sequence[Toolbox]) -> Self:
        self._toolboxes.extend(toolboxes)
        return self

    def system_prompt(self, prompt: str) -> Self:
        self._system_prompt = prompt
        return self

    def initial_prompt(self, prompt: str) -> Self:
        self._initial_prompt = prompt
        return self

    def instructor(self, instructor: Instructor) -> Self:
        self._instructor = instructor
        return self

    def logger(self, logger: LoggerBase) -> Self:
        self._logger = logger
        return self

    def from_settings(self, settings: Settings) -> Self:
        """Set the language model, the prompts and the instructor from
        the settings."""
        self._llm = create_model_from_settings(settings.model)
        if settings.agent.system_prompt is not None:
            self._system_prompt = settings.agent.system_prompt
        self._initial_prompt = settings.agent.initial_prompt
        self._instructor = get_instructor(settings.agent.instructor)
        return self

    def _all_tools(self) -> list[Tool]:
        tools: list[Tool] = list(self._tools)
        tools.extend(ListTools(tb) for tb in self._toolboxes)
        names: set[str] = set()
        for tool in tools:
            name = tool.normalized_name()
            if name in names:
                raise ValueError(f"Duplicate tool name: {name}")
            names.add(name)
        return tools

    def _system_message(
        self, instructor: Instructor, tools: Sequence[Tool]
    ) -> str:
        return self._system_prompt

    def _create(
        self,
        llm: BaseChatModel,
        tools: list[Tool],
        instructor: Instructor,
    ) -> Agent:
        raise NotImplementedError

    def build(self) -> Agent:
        """Create the agent.

        Raises:
            AgentBuildError: if the language model was not given
            ValueError: on duplicate tool names
        """
        if self._llm is None:
            raise AgentBuildError("llm")
        tools = self._all_tools()
        instructor = self._instructor or DefaultInstructor()
        return self._create(self._llm, tools, instructor)


class ConversationalAgentBuilder(AgentBuilder):
    """Builds a ConversationalAgent. The instructor's description of
    the tools and the response format is appended to the system
    prompt."""

    def _system_message(
        self, instructor: Instructor, tools: Sequence[Tool]
    ) -> str:
        return self._system_prompt + instructor.create_suffix(tools)

    def _create(
        self,
        llm: BaseChatModel,
        tools: list[Tool],
        instructor: Instructor,
    ) -> ConversationalAgent:
        prompt = create_prompt(
            self._system_message(instructor, tools), self._initial_prompt
        )
        return ConversationalAgent(
            llm,
            prompt,
            tools=tools,
            toolboxes=self._toolboxes,
            instructor=instructor,
            logger=self._logger,
        )

    def build(self) -> ConversationalAgent:
        return super().build()  # type: ignore


class ToolCallingAgentBuilder(AgentBuilder):
    """Builds a ToolCallingAgent."""

    def _create(
        self,
        llm: BaseChatModel,
        tools: list[Tool],
        instructor: Instructor,
    ) -> ToolCallingAgent:
        prompt = create_prompt(
            self._system_message(instructor, tools), self._initial_prompt
        )
        return ToolCallingAgent(
            llm,
            prompt,
            tools=tools,
            toolboxes=self._toolboxes,
            instructor=instructor,
            logger=self._logger,
        )

    def build(self) -> ToolCallingAgent:
        return super().build()  # type: ignore
