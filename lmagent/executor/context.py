"""
The execution context: the state of one run of the agent executor,
and the plan/act loop that drives it.

A run alternates planning, in which the agent decides the next output,
and acting, in which the tools it requested are executed in order.
The run ends when the agent gives a final answer that passes the
validator and the finalize hook, or with TooManyFailsError when
`max_consecutive_fails` failures occur without an intervening success.

Failures counted by the loop:
- an error of the agent while planning (model call, prompt, parsing)
- a plan rejected by the process_plan hook of the strategy
- a tool that cannot be resolved
- a call to a tool beyond its usage limit
- a tool error (fatal instead if `break_if_tool_error` is set)
- a final answer rejected by the process_final_answer hook, by the
  validator or by the finalize hook
- a tool request made after the ultimatum (see below)

When a tool call fails, the remaining calls of the same batch are not
executed. A successful tool call resets the count of failures.

Once `max_iterations` steps have been executed, further tool requests
are not carried out: the ultimatum messages are added to the prompt to
require a final answer, and the agent plans again. This first request
over the limit is not a failure. A tool request made in spite of the
ultimatum is not executed either, and it counts as a failure: a model
that keeps requesting tools therefore ends the run with
TooManyFailsError instead of looping. With `max_consecutive_fails` set
to None such a run does not terminate.

Memory is read when the run starts and written only when it succeeds,
as the last operation of the run. Errors of the memory store are not
counted as failures: they abort the run with MemoryStoreError.
"""

import inspect
from collections import defaultdict
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, Self

from lmagent.agents import Agent, ultimatum_messages
from lmagent.diary import Diary, SimpleDiary
from lmagent.errors import (
    AgentError,
    MemoryStoreError,
    PromptError,
    ToolError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolUsageLimitError,
    TooManyFailsError,
)
from lmagent.memory import SharedMemory
from lmagent.schemas import (
    AgentAction,
    AgentFinish,
    AgentInput,
    AgentStep,
    TokenUsage,
    ToolCall,
    merge_options,
    messages_to_string,
)
from lmagent.tools import Tool, normalize_tool_name
from lmagent.utils.logging import LoggerBase, get_logger
from .options import ExecutorOptions
from .output import ExecutionOutput
from .strategy import ExecutionStrategy

logger: LoggerBase = get_logger(__name__)

Validator = Callable[[str, list[AgentStep]], bool | Awaitable[bool]]
StepCallback = Callable[[AgentStep], None | Awaitable[None]]


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class ExecutionContext:
    """The state of one run. Create it with AgentExecutor.execution()
    and run it with start()."""

    def __init__(
        self,
        agent: Agent,
        inputs: Mapping[str, Any] | str,
        *,
        memory: SharedMemory | None = None,
        options: ExecutorOptions | None = None,
        validator: Validator | None = None,
        strategy: ExecutionStrategy | None = None,
        logger: LoggerBase = logger,
    ) -> None:
        self.agent = agent
        self.inputs = inputs
        self.memory = memory
        self.options = options or ExecutorOptions()
        self.validator = validator
        self.strategy = strategy or ExecutionStrategy()
        self.logger = logger

        self.diary: Diary = SimpleDiary()
        self.use_counts: defaultdict[str, int] = defaultdict(int)
        self.consecutive_fails: int = 0
        self.total_usage: TokenUsage | None = None
        self.agent_input: AgentInput | None = None
        self.shadow_tools: dict[str, Tool] = {}
        self.step_callback: StepCallback | None = None

    @property
    def steps(self) -> list[AgentStep]:
        return self.diary.get_steps()

    def with_shadow_tools(self, tools: Sequence[Tool]) -> Self:
        """Use the given tools in place of the agent's tools with the
        same name, for this run only."""
        for tool in tools:
            name = tool.normalized_name()
            if name not in self.agent.tools:
                self.logger.warning(
                    f"Shadow tool {name} does not replace a tool "
                    "of the agent"
                )
            self.shadow_tools[name] = tool
        return self

    def on_step(self, callback: StepCallback) -> Self:
        """Call `callback` with each step executed in this run. Errors
        of the callback are logged and do not affect the run."""
        self.step_callback = callback
        return self

    def _fail(self, message: str) -> None:
        self.consecutive_fails += 1
        self.logger.warning(
            f"{message} ({self.consecutive_fails} consecutive fails)"
        )

    def _too_many_fails(self) -> bool:
        limit = self.options.max_consecutive_fails
        return limit is not None and self.consecutive_fails >= limit

    async def _load_history(self, agent_input: AgentInput) -> AgentInput:
        if self.memory is None:
            return agent_input
        async with self.memory.read() as mem:
            try:
                history = list(mem.messages())
            except Exception as e:
                raise MemoryStoreError(
                    f"Could not read the memory: {e}"
                ) from e
        return agent_input.model_copy(update={'chat_history': history})

    def _log_initial_prompt(self, agent_input: AgentInput) -> None:
        try:
            messages = self.agent.prompt_messages(agent_input)
        except PromptError as e:
            self.logger.error(f"Error formatting initial messages: {e}")
            return
        self.logger.debug(
            "Initial prompt:\n" + messages_to_string(messages)
        )

    async def _notify_step(self, step: AgentStep) -> None:
        if self.step_callback is None:
            return
        try:
            await _maybe_await(self.step_callback(step))
        except Exception as e:
            self.logger.error(f"Error in step callback: {e}")

    async def _execute_call(self, tool_call: ToolCall) -> bool:
        """Execute one tool call. Returns False if the call failed and
        the rest of the batch must be skipped.

        Raises:
            ToolError: if the tool fails and break_if_tool_error is set
        """
        name = normalize_tool_name(tool_call.name)
        tool = await self.strategy.resolve_tool(
            self.agent, name, self.shadow_tools
        )
        if tool is None:
            self._fail(str(ToolNotFoundError(tool_call.name)))
            return False

        limit = tool.usage_limit
        if limit is not None:
            self.use_counts[name] += 1
            if self.use_counts[name] > limit:
                error = ToolUsageLimitError(
                    f"Tool {name} used beyond its limit of {limit} calls"
                )
                self._fail(str(error))
                return False

        self.logger.debug(f"Calling tool:\n{tool_call}")
        try:
            output = await tool.call(tool_call.arguments)
        except Exception as e:
            error = (
                e
                if isinstance(e, ToolError)
                else ToolExecutionError(f"Tool {name} failed: {e}")
            )
            if self.options.break_if_tool_error:
                self.logger.error(f"Tool error, aborting run: {error}")
                if error is e:
                    raise
                raise error from e
            self._fail(f"Tool error: {error}")
            return False

        step = self.strategy.build_step(tool_call, output)
        self.logger.debug(f"Tool {name} result:\n{step.result}")
        self.diary.push_step(step)
        self.consecutive_fails = 0
        await self._notify_step(step)
        return True

    async def _validate(self, final_answer: str) -> bool:
        if self.validator is None:
            return True
        return bool(
            await _maybe_await(self.validator(final_answer, self.steps))
        )

    async def start(self) -> ExecutionOutput:
        """Run the plan/act loop to completion.

        Returns:
            the output built from the final answer, with the usage of
            all model calls of the run

        Raises:
            TooManyFailsError: when the run is aborted
            ToolError: a tool failed and break_if_tool_error is set
            MemoryStoreError: the memory could not be read or updated
        """
        agent_input = self.strategy.prepare_input(self.inputs)
        agent_input = await self._load_history(agent_input)
        agent_input = agent_input.model_copy(update={'ultimatum': []})
        self.agent_input = agent_input
        self._log_initial_prompt(agent_input)

        while True:
            if self._too_many_fails():
                self.logger.error(
                    f"Too many consecutive fails "
                    f"({self.consecutive_fails} in a row), aborting"
                )
                raise TooManyFailsError(self.consecutive_fails)

            try:
                plan = await self.agent.plan(self.steps, self.agent_input)
            except AgentError as e:
                self.consecutive_fails += 1
                self.logger.error(
                    f"Planning error: {e} "
                    f"({self.consecutive_fails} consecutive fails)"
                )
                continue

            try:
                processed = await self.strategy.process_plan(plan)
            except (AgentError, ValueError) as e:
                self.total_usage = merge_options(self.total_usage, plan.usage)
                self._fail(f"Plan rejected: {e}")
                continue
            plan = processed
            self.total_usage = merge_options(self.total_usage, plan.usage)

            match plan.output:
                case AgentAction(tool_calls=tool_calls):
                    max_iterations = self.options.max_iterations
                    if (
                        max_iterations is not None
                        and len(self.diary) >= max_iterations
                    ):
                        if self.agent_input.ultimatum:
                            self._fail(
                                "Tool use requested after the "
                                "final answer was required"
                            )
                            continue
                        self.logger.warning(
                            f"Max iterations ({max_iterations}) "
                            "reached, forcing final answer"
                        )
                        self.agent_input = self.agent_input.model_copy(
                            update={'ultimatum': ultimatum_messages()}
                        )
                        continue

                    for tool_call in tool_calls:
                        if not await self._execute_call(tool_call):
                            break

                case AgentFinish(final_answer=final_answer):
                    try:
                        final_answer = (
                            await self.strategy.process_final_answer(
                                final_answer
                            )
                        )
                    except (AgentError, ValueError) as e:
                        self._fail(f"Final answer rejected: {e}")
                        continue

                    if not await self._validate(final_answer):
                        self._fail(
                            "Final answer rejected by the validator:\n"
                            + final_answer
                        )
                        continue

                    try:
                        output = await self.strategy.finalize(
                            final_answer, self.steps
                        )
                    except (AgentError, ValueError) as e:
                        self._fail(f"Could not build the output: {e}")
                        continue

                    usage = merge_options(self.total_usage, output.usage)
                    self.total_usage = usage

                    if self.memory is not None:
                        async with self.memory.write() as mem:
                            try:
                                mem.update(
                                    self.agent_input.human_message(),
                                    self.steps,
                                    final_answer,
                                )
                            except Exception as e:
                                self.logger.error(
                                    f"Could not update the memory: {e}"
                                )
                                raise MemoryStoreError(
                                    f"Could not update the memory: {e}"
                                ) from e

                    self.logger.debug(
                        f"Agent finished with result:\n{final_answer}"
                    )
                    return output.model_copy(update={'usage': usage})
