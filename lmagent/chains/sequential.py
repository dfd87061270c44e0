"""
Chains run in sequence, each receiving the outputs of the previous ones.
"""

from collections.abc import Sequence

from lmagent.schemas import TokenUsage, merge_options
from lmagent.utils.logging import LoggerBase, get_logger
from .base import Chain, ChainInput, ChainOutput, input_variables

logger: LoggerBase = get_logger(__name__)


class SequentialChain(Chain):
    """Runs the chains in order. The output of each chain is added to
    the variables under its `output_key`, and the variables are passed
    to the next chain. The output of the sequence is the output of the
    last chain, with the usage of all of them.

    Chains may also be combined with `|`:

    ```python
    sequence = names_chain | slogan_chain
    ```
    """

    def __init__(
        self, chains: Sequence[Chain], logger: LoggerBase = logger
    ) -> None:
        if not chains:
            raise ValueError("SequentialChain requires at least one chain")
        self.chains: list[Chain] = []
        for chain in chains:
            if isinstance(chain, SequentialChain):
                self.chains.extend(chain.chains)
            else:
                self.chains.append(chain)
        self.output_key = self.chains[-1].output_key
        self.logger = logger

    @property
    def input_keys(self) -> set[str]:
        # variables not produced by an earlier chain of the sequence
        keys: set[str] = set()
        produced: set[str] = set()
        for chain in self.chains:
            keys |= chain.input_keys - produced
            produced.add(chain.output_key)
        return keys

    async def ainvoke(self, inputs: ChainInput) -> ChainOutput:
        variables = input_variables(inputs)
        usage: TokenUsage | None = None
        output: ChainOutput | None = None
        for n, chain in enumerate(self.chains):
            output = await chain.ainvoke(variables)
            usage = merge_options(usage, output.usage)
            variables[chain.output_key] = output.content
            self.logger.debug(
                f"Chain {n + 1} of {len(self.chains)} completed "
                f"({chain.output_key})"
            )
        assert output is not None
        return ChainOutput(content=output.content, usage=usage)

    def __or__(self, other: Chain) -> Chain:
        return SequentialChain([*self.chains, other], logger=self.logger)
