"""
Typed tools.

`ToolFunction` splits a tool call into the parsing of the model's
arguments and the execution proper. When `input_model` is a pydantic
model, the arguments are validated against it and its JSON schema is
the schema shown to the model; otherwise the tool takes a single
string.

Example:
    ```python
    class SumInput(BaseModel):
        a: int
        b: int

    class Sum(ToolFunction):
        name = "sum"
        description = "Adds two integers"
        input_model = SumInput

        async def run(self, input: SumInput) -> int:
            return input.a + input.b
    ```

`FunctionTool` wraps a plain function, sync or async, taking a string.

A `run` that is not a coroutine function is executed in a worker
thread, so that blocking tools do not stall the other runs of the
event loop.
"""

import asyncio
import inspect
import json
from abc import abstractmethod
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ValidationError

from lmagent.errors import ToolInputError
from .base import Tool, ToolOutput, default_parameters


def _input_as_string(input: Any) -> str:
    match input:
        case str():
            return input
        case None:
            return ""
        case {'input': str(value)} if len(input) == 1:  # type: ignore
            return value
        case _:
            return json.dumps(input, ensure_ascii=False)


class ToolFunction(Tool):
    """A tool with typed input. Subclasses implement `run`, which may
    be a coroutine or a plain function, and may override
    `parse_input`."""

    input_model: type[BaseModel] | None = None
    limit: int | None = None

    @property
    def usage_limit(self) -> int | None:
        return self.limit

    @property
    def parameters(self) -> dict[str, Any]:
        if self.input_model is None:
            return default_parameters()
        schema = self.input_model.model_json_schema()
        schema.pop('title', None)
        return schema

    async def parse_input(self, input: Any) -> Any:
        """Convert the arguments given by the model into the input of
        `run`.

        Raises:
            ToolInputError: if the arguments do not validate
        """
        if self.input_model is None:
            return _input_as_string(input)

        model = self.input_model
        try:
            if isinstance(input, str):
                try:
                    input = json.loads(input)
                except json.JSONDecodeError:
                    # a bare string fills a model with a single field
                    fields = list(model.model_fields)
                    if len(fields) != 1:
                        raise ToolInputError(
                            f"Invalid input for {self.name}: "
                            "expected a JSON object"
                        )
                    input = {fields[0]: input}
            return model.model_validate(input)
        except ValidationError as e:
            raise ToolInputError(
                f"Invalid input for {self.name}: {e}"
            ) from e

    @abstractmethod
    def run(self, input: Any) -> Any:
        """Execute the tool on the parsed input."""
        pass

    async def call(self, input: Any) -> ToolOutput:
        parsed = await self.parse_input(input)
        if inspect.iscoroutinefunction(self.run):
            result = await self.run(parsed)
        else:
            # a blocking run must not hold the event loop
            result = await asyncio.to_thread(self.run, parsed)
            if inspect.isawaitable(result):
                result = await result
        return ToolOutput.from_value(result)


class FunctionTool(ToolFunction):
    """A tool from a function taking a string."""

    def __init__(
        self,
        func: Callable[[str], Any],
        *,
        name: str | None = None,
        description: str | None = None,
        usage_limit: int | None = None,
    ) -> None:
        self.func = func
        self._name = name or func.__name__
        self._description = description or inspect.getdoc(func) or ""
        self.limit = usage_limit

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    def run(self, input: str) -> Any:
        return self.func(input)
