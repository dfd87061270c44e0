"""
A tool running commands on the local machine.

The model gives a list of commands, each with its arguments, which are
executed in order without a shell. The output of each command is
collected; the first command that cannot be started, times out, or
exits with a non-zero status ends the call with a ToolExecutionError.

Example:
    ```python
    tool = CommandExecutor(platform="linux", cwd="/tmp/workspace")
    output = await tool.call(
        [{"cmd": "ls", "args": []}, {"cmd": "mkdir", "args": ["test"]}]
    )
    ```

Note:
    The commands are executed with the permissions of the process.
    Give this tool only to agents whose model output you trust, or
    run them in a sandbox.
"""

import asyncio
import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from lmagent.errors import ToolExecutionError
from .function import ToolFunction


class Command(BaseModel):
    """Object representing a command and its optional arguments"""

    cmd: str = Field(description="The command to execute")
    args: list[str] = Field(
        default_factory=list,
        description="List of arguments for the command",
    )

    model_config = ConfigDict(extra='forbid')


class CommandExecutorInput(BaseModel):
    commands: list[Command] = Field(
        description="An array of commands to be executed"
    )

    model_config = ConfigDict(extra='forbid')


def _decode(data: bytes) -> str:
    return data.decode(errors='replace')


class CommandExecutor(ToolFunction):
    """Executes terminal commands for the agent."""

    name = "Command Executor"
    input_model = CommandExecutorInput

    def __init__(
        self,
        platform: str = "linux",
        *,
        cwd: str | Path | None = None,
        timeout: float | None = 30.0,
        usage_limit: int | None = None,
    ) -> None:
        self.platform = platform
        self.cwd = cwd
        self.timeout = timeout
        self.limit = usage_limit

    @property
    def description(self) -> str:
        return (
            "This tool lets you run commands on the terminal. "
            "The input should be an array with commands for the "
            f"following platform: {self.platform}. Example of input: "
            '[{"cmd": "ls", "args": []}, {"cmd": "mkdir", "args": ["test"]}]'
        )

    @property
    def parameters(self) -> dict[str, Any]:
        command = Command.model_json_schema()
        command.pop('title', None)
        for prop in command['properties'].values():
            prop.pop('title', None)
        return {
            'type': "object",
            'properties': {
                'commands': {
                    'type': "array",
                    'description': "An array of commands to be executed",
                    'items': command,
                }
            },
            'required': ['commands'],
            'additionalProperties': False,
        }

    async def parse_input(self, input: Any) -> Any:
        # the bare array of commands is accepted as well
        if isinstance(input, str):
            try:
                input = json.loads(input)
            except json.JSONDecodeError:
                pass
        if isinstance(input, list):
            input = {'commands': input}
        return await super().parse_input(input)

    async def _execute(self, command: Command) -> str:
        try:
            process = await asyncio.create_subprocess_exec(
                command.cmd,
                *command.args,
                cwd=self.cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ToolExecutionError(
                f"Command {command.cmd} could not be started: {e}"
            ) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout
            )
        except TimeoutError:
            process.kill()
            await process.wait()
            raise ToolExecutionError(
                f"Command {command.cmd} timed out after {self.timeout} s"
            )

        if process.returncode != 0:
            raise ToolExecutionError(
                f"Command {command.cmd} failed with status: "
                f"{process.returncode}\n{_decode(stderr)}"
            )
        return f"Command: {command.cmd}\nOutput: {_decode(stdout)}"

    async def run(self, input: CommandExecutorInput) -> str:
        results = [await self._execute(c) for c in input.commands]
        return "\n".join(results)
