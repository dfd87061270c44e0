"""
Conversational agent: tools are described in the system prompt and the
model requests them by answering in JSON text, interpreted by the
instructor.

Each step of the run is replayed to the model as the JSON of its tool
call, as if written by the model, followed by the result of the tool
as a human message.
"""

from collections.abc import Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

from lmagent.schemas import AgentStep
from .agent import Agent


class ConversationalAgent(Agent):
    """An agent for models without native tool calling."""

    def construct_scratchpad(
        self, steps: Sequence[AgentStep]
    ) -> list[BaseMessage]:
        messages: list[BaseMessage] = []
        for step in steps:
            messages.append(AIMessage(content=str(step.tool_call)))
            messages.append(HumanMessage(content=step.result))
        return messages
