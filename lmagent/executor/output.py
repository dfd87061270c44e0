"""The value returned by a successful executor run."""

from typing import Any

from pydantic import BaseModel, ConfigDict

from lmagent.schemas import TokenUsage


class ExecutionOutput(BaseModel):
    """
    The final output of a run.

    Attributes:
        content: the final answer
        extra_content: optional structured data built by the
            execution strategy from the final answer
        usage: the tokens consumed by all model calls of the run
    """

    content: str
    extra_content: Any = None
    usage: TokenUsage | None = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.content
