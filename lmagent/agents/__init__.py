"""Agents: a language model with a prompt and tools, deciding at each
step whether to call tools or to give the final answer."""

# pyright: reportUnusedImport=false
# flake8: noqa

from .prompts import (
    DEFAULT_SYSTEM_PROMPT,
    DEFAULT_INITIAL_PROMPT,
    FORCE_FINAL_ANSWER,
    create_prompt,
    ultimatum_messages,
)
from .agent import Agent
from .conversational import ConversationalAgent
from .tool_calling import ToolCallingAgent
from .builder import (
    AgentBuilder,
    ConversationalAgentBuilder,
    ToolCallingAgentBuilder,
)
