"""
Iterators of model responses, used to feed the fake chat model of the
'Debug' source and to script agent conversations in tests.

Example:
    ```python
    from langchain_core.language_models.fake_chat_models import (
        GenericFakeChatModel,
    )

    model = GenericFakeChatModel(messages=yield_script([
        '{"action": "search", "action_input": "weather in Rome"}',
        '{"final_answer": "Sunny"}',
    ]))
    ```
"""

import json
from collections.abc import Iterable, Iterator

from langchain_core.messages import AIMessage

Response = str | AIMessage


class MessageIterator:
    """
    An infinite iterator of final answers in the JSON protocol of the
    default instructor: '{"final_answer": "{prefix} {counter}"}', with
    counter starting at 1.
    """

    def __init__(self, prefix: str = "Message") -> None:
        self.prefix = prefix
        self.counter = 1

    def __iter__(self) -> Iterator[str]:
        return self

    def __next__(self) -> str:
        message = json.dumps(
            {'final_answer': f"{self.prefix} {self.counter}"}
        )
        self.counter += 1
        return message


class ScriptIterator:
    """
    Iterates through a script of responses. When the script is
    exhausted, the last response is repeated if repeat_last is True,
    else StopIteration is raised.
    """

    def __init__(
        self, responses: Iterable[Response], repeat_last: bool = True
    ) -> None:
        self.responses: list[Response] = list(responses)
        if not self.responses:
            raise ValueError("The script of responses is empty")
        self.repeat_last = repeat_last
        self.position = 0

    def __iter__(self) -> Iterator[Response]:
        return self

    def __next__(self) -> Response:
        if self.position >= len(self.responses):
            if not self.repeat_last:
                raise StopIteration
            return self.responses[-1]
        response = self.responses[self.position]
        self.position += 1
        return response


def yield_message(prefix: str = "Message") -> MessageIterator:
    """
    An iterator of numbered final answers.

    Example:
        >>> iterator = yield_message()
        >>> next(iterator)
        '{"final_answer": "Message 1"}'
    """
    return MessageIterator(prefix)


def yield_constant_message(message: str) -> ScriptIterator:
    """An iterator always returning the same response."""
    return ScriptIterator([message])


def yield_script(
    responses: Iterable[Response], repeat_last: bool = False
) -> ScriptIterator:
    """An iterator returning the given responses in order."""
    return ScriptIterator(responses, repeat_last=repeat_last)
