# pyright: reportUnusedImport=false
# flake8: noqa

from .base import (
    Tool,
    ToolOutput,
    normalize_tool_name,
    describe_parameters,
    default_parameters,
)
from .function import ToolFunction, FunctionTool
from .langchain_tool import LangChainTool
from .toolbox import Toolbox, SimpleToolbox, ListTools
from .command_executor import CommandExecutor, Command, CommandExecutorInput

# The MCP toolbox requires the optional mcp package, import it from
# lmagent.tools.mcp
