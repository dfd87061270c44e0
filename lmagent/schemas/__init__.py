# pyright: reportUnusedImport=false
# flake8: noqa

from .token_usage import TokenUsage, merge_options
from .tool_call import ToolCall, AgentStep, new_tool_call_id
from .agent import (
    AgentAction,
    AgentFinish,
    AgentOutput,
    AgentPlan,
    AgentInput,
)
from .messages import (
    message_text,
    tool_call_message,
    tool_message,
    messages_to_string,
)
