"""
Chains: single-shot calls to a language model, without tools.

A chain formats a prompt with its input variables, calls the model
and returns the text of the response with the token usage. Chains
compose: the output of a chain is bound to its `output_key` variable
in the input of the next chain of a SequentialChain.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

from lmagent.schemas import TokenUsage

ChainInput = Mapping[str, Any] | str


class ChainOutput(BaseModel):
    """The text produced by a chain and the token usage of its model
    calls."""

    content: str
    usage: TokenUsage | None = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.content


def input_variables(inputs: ChainInput) -> dict[str, Any]:
    """The variables of a chain input. A string is bound to 'input'."""
    if isinstance(inputs, str):
        return {'input': inputs}
    return dict(inputs)


class Chain(ABC):
    """Abstract interface of chains."""

    output_key: str = "output"

    @property
    @abstractmethod
    def input_keys(self) -> set[str]:
        """The variables the chain requires."""
        pass

    @abstractmethod
    async def ainvoke(self, inputs: ChainInput) -> ChainOutput:
        """Run the chain.

        Raises:
            PromptError: a variable of the prompt is missing
            LLMError: the model call failed or the model refused
        """
        pass

    def invoke(self, inputs: ChainInput) -> ChainOutput:
        """Synchronous version of ainvoke. Not callable from a running
        event loop."""
        return asyncio.run(self.ainvoke(inputs))

    def __or__(self, other: 'Chain') -> 'Chain':
        from .sequential import SequentialChain

        return SequentialChain([self, other])
