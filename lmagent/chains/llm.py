"""
The LLM chain: a prompt template piped into a chat model.

Example:

```python
from lmagent.chains import LLMChain
from lmagent.language_models import create_model_from_spec

chain = LLMChain(
    create_model_from_spec("OpenAI/gpt-4.1-mini"),
    "Give me a name for a shop selling {product}",
    output_key="name",
)
output = await chain.ainvoke({'product': "socks"})
print(output.content, output.usage)
```
"""

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage
from langchain_core.prompts import (
    ChatPromptTemplate,
    HumanMessagePromptTemplate,
)

from lmagent.errors import LLMError, PromptError
from lmagent.schemas import TokenUsage, message_text
from lmagent.utils.logging import LoggerBase, get_logger
from .base import Chain, ChainInput, ChainOutput, input_variables

logger: LoggerBase = get_logger(__name__)


class LLMChain(Chain):
    """Formats the prompt and calls the model once.

    Args:
        llm: the chat model
        prompt: a chat prompt template, or the template of a single
            human message in f-string format
        output_key: the variable bound to the output when the chain
            is followed by another in a sequence
        logger: receives the prompt and the output at debug level
    """

    def __init__(
        self,
        llm: BaseChatModel,
        prompt: ChatPromptTemplate | str,
        output_key: str = "output",
        logger: LoggerBase = logger,
    ) -> None:
        if isinstance(prompt, str):
            prompt = ChatPromptTemplate.from_messages(
                [HumanMessagePromptTemplate.from_template(prompt)]
            )
        self.llm = llm
        self.prompt = prompt
        self.output_key = output_key
        self.logger = logger

    @property
    def input_keys(self) -> set[str]:
        return set(self.prompt.input_variables)

    def prompt_messages(self, inputs: ChainInput) -> list[BaseMessage]:
        try:
            return self.prompt.format_messages(**input_variables(inputs))
        except (KeyError, ValueError) as e:
            raise PromptError(f"Could not format the prompt: {e}") from e

    async def ainvoke(self, inputs: ChainInput) -> ChainOutput:
        messages = self.prompt_messages(inputs)
        try:
            response = await self.llm.ainvoke(messages)
        except Exception as e:
            raise LLMError(f"Language model call failed: {e}") from e

        refusal = response.additional_kwargs.get('refusal')
        if refusal:
            raise LLMError(f"The model refused to answer: {refusal}")

        content = message_text(response)
        usage = TokenUsage.from_usage_metadata(
            getattr(response, 'usage_metadata', None)  # type: ignore
        )
        self.logger.debug(f"LLM output:\n{content}")
        if usage is not None:
            self.logger.debug(f"Token usage: {usage}")
        return ChainOutput(content=content, usage=usage)
