"""
The agent executor runs an agent to a final answer.

Example:

```python
from lmagent.executor import AgentExecutor
from lmagent.memory import SimpleMemory

executor = AgentExecutor(agent, memory=SimpleMemory())
output = await executor.ainvoke("What is the weather in Rome?")
print(output.content, output.usage)
```

The executor holds the configuration shared by its runs (the agent,
the memory, the options, the validator and the strategy). Each call
creates an ExecutionContext, with its own strategy object, which may
be customized for that run:

```python
output = await (
    executor.execution({'input': "..."})
    .with_shadow_tools([mock_search])
    .on_step(print)
    .start()
)
```

Runs of the same executor may proceed concurrently. A memory passed to
the executor is wrapped in a SharedMemory; pass a SharedMemory to
share it with other executors.
"""

import asyncio
from collections.abc import Mapping
from typing import Any

from lmagent.agents import Agent
from lmagent.config import Settings
from lmagent.memory import BaseMemory, SharedMemory, create_memory
from lmagent.utils.logging import LoggerBase, get_logger
from .context import ExecutionContext, Validator
from .options import ExecutorOptions
from .output import ExecutionOutput
from .strategy import ExecutionStrategy, StrategyFactory, strategy_factory

logger: LoggerBase = get_logger(__name__)


class AgentExecutor:
    """Runs an agent in the plan/act loop.

    Args:
        strategy: a strategy instance, deep-copied for each run, or a
            callable such as an ExecutionStrategy subclass that creates
            the strategy of each run
    """

    def __init__(
        self,
        agent: Agent,
        memory: BaseMemory | SharedMemory | None = None,
        options: ExecutorOptions | None = None,
        validator: Validator | None = None,
        strategy: ExecutionStrategy | StrategyFactory | None = None,
        logger: LoggerBase = logger,
    ) -> None:
        self.agent = agent
        if isinstance(memory, BaseMemory):
            memory = SharedMemory(memory)
        self.memory: SharedMemory | None = memory
        self.options: ExecutorOptions = options or ExecutorOptions()
        self.validator = validator
        self.strategy_factory: StrategyFactory = strategy_factory(strategy)
        self.logger = logger

    @classmethod
    def from_settings(
        cls,
        agent: Agent,
        settings: Settings,
        logger: LoggerBase = logger,
    ) -> 'AgentExecutor':
        """An executor with the options and the memory of the
        settings."""
        return cls(
            agent,
            memory=create_memory(settings.agent),
            options=settings.executor,
            logger=logger,
        )

    def execution(self, inputs: Mapping[str, Any] | str) -> ExecutionContext:
        """A new run on the given inputs, started with start()."""
        return ExecutionContext(
            self.agent,
            inputs,
            memory=self.memory,
            options=self.options,
            validator=self.validator,
            strategy=self.strategy_factory(),
            logger=self.logger,
        )

    async def ainvoke(
        self, inputs: Mapping[str, Any] | str
    ) -> ExecutionOutput:
        """Run the agent on the inputs.

        Args:
            inputs: the variables of the prompt, or a string for the
                'input' variable

        Raises:
            TooManyFailsError: the run was aborted
            ToolError: a tool failed and break_if_tool_error is set
        """
        return await self.execution(inputs).start()

    def invoke(self, inputs: Mapping[str, Any] | str) -> ExecutionOutput:
        """Synchronous version of ainvoke. Not callable from a running
        event loop."""
        return asyncio.run(self.ainvoke(inputs))
