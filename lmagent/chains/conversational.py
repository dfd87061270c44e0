"""
A chain holding a conversation: the exchanges are kept in a memory and
given back to the model as chat history at each call.

Example:

```python
chain = ConversationalChain(llm, system_prompt="You are a poet.")
await chain.ainvoke("Write a haiku about the sea")
await chain.ainvoke("Now one about the mountains")
```
"""

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import SystemMessage
from langchain_core.prompts import (
    ChatPromptTemplate,
    HumanMessagePromptTemplate,
    MessagesPlaceholder,
)

from lmagent.agents.prompts import CHAT_HISTORY, DEFAULT_SYSTEM_PROMPT
from lmagent.errors import MemoryStoreError, PromptError
from lmagent.memory import BaseMemory, SharedMemory, SimpleMemory
from lmagent.utils.logging import LoggerBase, get_logger
from .base import ChainInput, ChainOutput, input_variables
from .llm import LLMChain

logger: LoggerBase = get_logger(__name__)


class ConversationalChain(LLMChain):
    """An LLM chain with conversational memory.

    The prompt is the system prompt, followed by the chat history and
    by the human message `{input_key}`. The history is read when the
    chain is invoked; the human message and the response are added to
    the memory only after a successful model call.

    Args:
        llm: the chat model
        memory: the memory, shared or not (a new SimpleMemory if
            omitted)
        system_prompt: the system prompt, used verbatim
        input_key: the variable holding the human message
        output_key: the variable bound to the output in a sequence
    """

    def __init__(
        self,
        llm: BaseChatModel,
        memory: BaseMemory | SharedMemory | None = None,
        system_prompt: str | None = None,
        input_key: str = "input",
        output_key: str = "output",
        logger: LoggerBase = logger,
    ) -> None:
        prompt = ChatPromptTemplate.from_messages(
            [
                SystemMessage(content=system_prompt or DEFAULT_SYSTEM_PROMPT),
                MessagesPlaceholder(CHAT_HISTORY, optional=True),
                HumanMessagePromptTemplate.from_template(
                    "{" + input_key + "}"
                ),
            ]
        )
        super().__init__(llm, prompt, output_key=output_key, logger=logger)
        if memory is None:
            memory = SimpleMemory()
        if isinstance(memory, BaseMemory):
            memory = SharedMemory(memory)
        self.memory: SharedMemory = memory
        self.input_key = input_key

    async def ainvoke(self, inputs: ChainInput) -> ChainOutput:
        variables = input_variables(inputs)
        if isinstance(inputs, str):
            variables = {self.input_key: inputs}
        if self.input_key not in variables:
            raise PromptError(f"Missing input variable: {self.input_key}")

        async with self.memory.read() as mem:
            try:
                history = list(mem.messages())
            except Exception as e:
                raise MemoryStoreError(
                    f"Could not read the memory: {e}"
                ) from e
        variables[CHAT_HISTORY] = history

        output = await super().ainvoke(variables)

        async with self.memory.write() as mem:
            try:
                mem.add_user_message(str(variables[self.input_key]))
                mem.add_ai_message(output.content)
            except Exception as e:
                raise MemoryStoreError(
                    f"Could not update the memory: {e}"
                ) from e
        return output
