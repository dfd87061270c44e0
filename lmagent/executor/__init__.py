"""The executor: runs an agent in the plan/act loop until it gives a
final answer."""

# pyright: reportUnusedImport=false
# flake8: noqa

from .options import ExecutorOptions
from .output import ExecutionOutput
from .strategy import ExecutionStrategy, StrategyFactory
from .context import ExecutionContext, Validator, StepCallback
from .executor import AgentExecutor
