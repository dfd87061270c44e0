"""
Exceptions raised by the agent framework.

Most errors raised while an agent runs are recoverable: the executor
catches them, counts them as failures and plans again. Only
`TooManyFailsError`, tool errors when the executor is configured to
stop on them, and `MemoryStoreError` reach the caller of the executor.
"""


class AgentError(Exception):
    """Base class of the errors of the framework."""


class LLMError(AgentError):
    """The language model call failed or the model refused to answer."""


class PromptError(AgentError):
    """The prompt could not be formatted from the agent input."""


class OutputParseError(AgentError):
    """The model attempted a structured response that could not be
    parsed. The offending text is stored in `text`."""

    def __init__(self, message: str, text: str) -> None:
        super().__init__(f"{message}\nOutput: {text}")
        self.text = text


class ToolError(AgentError):
    """Base class of tool errors."""


class ToolExecutionError(ToolError):
    """The tool raised while executing."""


class ToolInputError(ToolError):
    """The tool input could not be parsed into the tool's input type."""


class ToolNotFoundError(ToolError):
    """No tool with the given name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Tool not found: {name}")
        self.name = name


class ToolUsageLimitError(ToolError):
    """The tool was called more times than its usage limit allows."""


class RemoteToolError(ToolError):
    """A remote toolbox failed to list or to execute its tools."""


class AgentBuildError(AgentError):
    """A required field was not given to an agent builder."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Missing required field: {field}")
        self.field = field


class TooManyFailsError(AgentError):
    """The run was aborted after too many consecutive failures."""

    def __init__(self, count: int) -> None:
        super().__init__(f"Too many consecutive fails: {count}")
        self.count = count


class MemoryStoreError(AgentError):
    """The conversational memory could not be read or written."""
