"""
Adapter exposing LangChain tools to the agents of this package, so
that the tools of the LangChain ecosystem, and functions decorated
with `langchain_core.tools.tool`, can be handed to an agent.

Example:
    ```python
    from langchain_core.tools import tool

    @tool
    def multiply(a: int, b: int) -> int:
        \"\"\"Multiply two integers.\"\"\"
        return a * b

    agent_tool = LangChainTool(multiply)
    ```
"""

from typing import Any

from pydantic import ValidationError
from langchain_core.tools import BaseTool, ToolException
from langchain_core.utils.function_calling import convert_to_openai_tool

from lmagent.errors import ToolExecutionError, ToolInputError
from .base import Tool, ToolOutput


class LangChainTool(Tool):
    """A LangChain BaseTool seen as a Tool."""

    def __init__(
        self, tool: BaseTool, usage_limit: int | None = None
    ) -> None:
        self.tool = tool
        self._usage_limit = usage_limit

    @property
    def name(self) -> str:
        return self.tool.name

    @property
    def description(self) -> str:
        return self.tool.description

    @property
    def parameters(self) -> dict[str, Any]:
        return convert_to_openai_tool(self.tool)['function']['parameters']

    @property
    def usage_limit(self) -> int | None:
        return self._usage_limit

    async def call(self, input: Any) -> ToolOutput:
        try:
            result = await self.tool.ainvoke(input)
        except ValidationError as e:
            raise ToolInputError(
                f"Invalid input for {self.name}: {e}"
            ) from e
        except ToolException as e:
            raise ToolExecutionError(str(e)) from e
        return ToolOutput.from_value(result)
