"""
The values exchanged between the agent and the executor.

At each planning step the agent returns an `AgentPlan`, holding an
`AgentOutput` and the tokens used to produce it. The output is either
an `AgentAction` (one or more tool calls) or an `AgentFinish` (the
final answer). The executor dispatches on the output type:

    ```python
    match plan.output:
        case AgentAction(tool_calls=calls):
            ...
        case AgentFinish(final_answer=answer):
            ...
    ```

`AgentInput` carries the variables of the prompt template and the
three conventional message placeholders: the conversational history,
the scratchpad of the current run and the ultimatum.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from langchain_core.messages import BaseMessage, HumanMessage

from .tool_call import ToolCall
from .token_usage import TokenUsage


class AgentAction(BaseModel):
    """The model requests the execution of tools, in order."""

    tool_calls: list[ToolCall]

    model_config = ConfigDict(frozen=True)


class AgentFinish(BaseModel):
    """The model gives its final answer."""

    final_answer: str

    model_config = ConfigDict(frozen=True)


AgentOutput = AgentAction | AgentFinish


class AgentPlan(BaseModel):
    """An agent output with the usage of the call that produced it."""

    output: AgentOutput
    usage: TokenUsage | None = None

    model_config = ConfigDict(frozen=True)


class AgentInput(BaseModel):
    """Input of the prompt template of an agent."""

    variables: dict[str, Any] = Field(default_factory=dict)
    chat_history: list[BaseMessage] = Field(default_factory=list)
    agent_scratchpad: list[BaseMessage] = Field(default_factory=list)
    ultimatum: list[BaseMessage] = Field(default_factory=list)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def to_prompt_args(self) -> dict[str, Any]:
        """The keyword arguments of ChatPromptTemplate.format_messages"""
        return {
            **self.variables,
            'chat_history': self.chat_history,
            'agent_scratchpad': self.agent_scratchpad,
            'ultimatum': self.ultimatum,
        }

    def human_message(self) -> HumanMessage:
        """The user turn recorded in memory at the end of a run."""
        if 'input' in self.variables:
            return HumanMessage(content=str(self.variables['input']))
        return HumanMessage(
            content="\n".join(str(v) for v in self.variables.values())
        )
