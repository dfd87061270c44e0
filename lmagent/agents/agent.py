"""
Agent abstraction: a language model and a prompt, with the tools the
model may call.

At each planning step, the agent formats its prompt with the input of
the run, the conversational history and the scratchpad of the tool
calls made so far; calls the model; and interprets the response as an
`AgentOutput`. Tool calls returned natively by the model are used as
they are; text responses are interpreted by the agent's instructor.

The executor (lmagent.executor) drives the agent in the plan/act loop
and executes the tools it requests, resolved through `get_tool`.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.prompts import ChatPromptTemplate
from langchain_core.runnables import Runnable

from lmagent.errors import (
    LLMError,
    PromptError,
    RemoteToolError,
    ToolNotFoundError,
)
from lmagent.output_parser import Instructor, DefaultInstructor
from lmagent.schemas import (
    AgentAction,
    AgentInput,
    AgentPlan,
    AgentStep,
    TokenUsage,
    ToolCall,
    message_text,
)
from lmagent.tools import Tool, Toolbox, normalize_tool_name
from lmagent.utils.logging import LoggerBase, get_logger

logger: LoggerBase = get_logger(__name__)


class Agent(ABC):
    """Abstract base class of agents."""

    def __init__(
        self,
        llm: BaseChatModel,
        prompt: ChatPromptTemplate,
        tools: Sequence[Tool] = (),
        toolboxes: Sequence[Toolbox] = (),
        instructor: Instructor | None = None,
        logger: LoggerBase = logger,
    ) -> None:
        self.llm = llm
        self.prompt = prompt
        self.tools: dict[str, Tool] = {
            t.normalized_name(): t for t in tools
        }
        self.toolboxes: list[Toolbox] = list(toolboxes)
        self.instructor: Instructor = instructor or DefaultInstructor()
        self.logger = logger

    @abstractmethod
    def construct_scratchpad(
        self, steps: Sequence[AgentStep]
    ) -> list[BaseMessage]:
        """The messages replaying the steps of the run to the model."""
        pass

    def runnable(self) -> Runnable[Any, BaseMessage]:
        """The runnable invoked with the prompt messages."""
        return self.llm

    async def get_tool(self, name: str) -> Tool | None:
        """Resolve a tool name: the tools of the agent first, then the
        toolboxes in their registration order."""
        name = normalize_tool_name(name)
        if name in self.tools:
            return self.tools[name]
        for toolbox in self.toolboxes:
            try:
                return await toolbox.get_tool(name)
            except ToolNotFoundError:
                continue
            except RemoteToolError as e:
                self.logger.warning(
                    f"Toolbox {toolbox.name} unavailable: {e}"
                )
        return None

    def prompt_messages(self, agent_input: AgentInput) -> list[BaseMessage]:
        """Format the prompt.

        Raises:
            PromptError: if a variable of the prompt is missing
        """
        try:
            return self.prompt.format_messages(
                **agent_input.to_prompt_args()
            )
        except (KeyError, ValueError) as e:
            raise PromptError(f"Could not format the prompt: {e}") from e

    async def plan(
        self, steps: Sequence[AgentStep], agent_input: AgentInput
    ) -> AgentPlan:
        """Decide the next action, given the steps executed so far.

        Raises:
            PromptError: the prompt could not be formatted
            LLMError: the model call failed or the model refused
            OutputParseError: the response could not be interpreted
        """
        agent_input = agent_input.model_copy(
            update={'agent_scratchpad': self.construct_scratchpad(steps)}
        )
        messages = self.prompt_messages(agent_input)

        try:
            response = await self.runnable().ainvoke(messages)
        except Exception as e:
            raise LLMError(f"Language model call failed: {e}") from e

        usage = TokenUsage.from_usage_metadata(
            getattr(response, 'usage_metadata', None)  # type: ignore
        )
        refusal = response.additional_kwargs.get('refusal')
        if refusal:
            raise LLMError(f"The model refused to answer: {refusal}")

        if isinstance(response, AIMessage) and response.tool_calls:
            calls = [ToolCall.from_langchain(c) for c in response.tool_calls]
            return AgentPlan(
                output=AgentAction(tool_calls=calls), usage=usage
            )

        output = self.instructor.parse_output(message_text(response))
        return AgentPlan(output=output, usage=usage)
