"""
Execution strategy: the hooks with which the executor loop prepares
the input of a run, checks the plans of the agent, resolves tools,
records steps and builds the final output.

The hooks are called in this order:

1. prepare_input, once at the start of the run
2. process_plan, on each plan of the agent
3. resolve_tool and build_step, for each tool call
4. process_final_answer, on the final answer before validation
5. finalize, to build the output of the run

Subclass ExecutionStrategy to customize a hook, for example to parse
the final answer into structured data:

```python
class JsonAnswer(ExecutionStrategy):
    async def finalize(self, final_answer, steps):
        data = json.loads(final_answer)  # ValueError: plan again
        return ExecutionOutput(content=final_answer, extra_content=data)
```

A process_plan, process_final_answer or finalize hook raising
AgentError or ValueError counts as a failure of the run, and the
agent is asked to plan again.

Each run works on its own strategy object, so that a subclass may
keep per-run state in its attributes. The executor creates it by
calling the strategy factory it was given, or by copying the strategy
instance it was given.
"""

import copy
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from lmagent.agents import Agent
from lmagent.schemas import AgentInput, AgentPlan, AgentStep, ToolCall
from lmagent.tools import Tool, ToolOutput
from .output import ExecutionOutput


class ExecutionStrategy:
    """Default hooks of the executor loop."""

    def prepare_input(self, inputs: Mapping[str, Any] | str) -> AgentInput:
        """The input of the run. A string is bound to the 'input'
        variable of the prompt."""
        if isinstance(inputs, str):
            return AgentInput(variables={'input': inputs})
        return AgentInput(variables=dict(inputs))

    async def process_plan(self, plan: AgentPlan) -> AgentPlan:
        """Check or rewrite the plan of the agent before it is acted
        upon. Raise AgentError or ValueError to reject it."""
        return plan

    async def resolve_tool(
        self,
        agent: Agent,
        name: str,
        shadow_tools: Mapping[str, Tool],
    ) -> Tool | None:
        """The tool with the given normalized name. Shadow tools of the
        run take the place of the agent's tools of the same name."""
        if name in shadow_tools:
            return shadow_tools[name]
        return await agent.get_tool(name)

    def build_step(self, tool_call: ToolCall, output: ToolOutput) -> AgentStep:
        return AgentStep(
            tool_call=tool_call, result=str(output), summary=output.summary
        )

    async def process_final_answer(self, final_answer: str) -> str:
        """Check or transform the final answer before it is validated.
        Raise AgentError or ValueError to reject it."""
        return final_answer

    async def finalize(
        self, final_answer: str, steps: Sequence[AgentStep]
    ) -> ExecutionOutput:
        """Build the output of the run from the final answer."""
        return ExecutionOutput(content=final_answer)


StrategyFactory = Callable[[], ExecutionStrategy]


def strategy_factory(
    strategy: ExecutionStrategy | StrategyFactory | None,
) -> StrategyFactory:
    """A factory giving a new strategy object for each run. An
    instance is used as a template and deep-copied."""
    if strategy is None:
        return ExecutionStrategy
    if isinstance(strategy, ExecutionStrategy):
        template = strategy
        return lambda: copy.deepcopy(template)
    return strategy
