"""
`LazyLoadingDict` is a dictionary whose values are created on first
access by a factory function applied to the key, and memoized. It
stores the language model objects created from settings, so that
agents configured with equal settings share one model object.

Keys must be hashable; frozen pydantic models (such as
LanguageModelSettings) are the typical key, and their validation
makes invalid definitions fail at key construction.

Example:
    ```python
    def create_model(settings: LanguageModelSettings) -> BaseChatModel:
        ...

    models = LazyLoadingDict(create_model)
    model = models[LanguageModelSettings(model="OpenAI/gpt-4.1-mini")]
    # the second access returns the same object
    assert model is models[LanguageModelSettings(model="OpenAI/gpt-4.1-mini")]
    ```

Values that are removed from the dictionary are disposed of by the
destructor function, if given, or else by their close() or dispose()
method, if they have one.
"""

from collections.abc import Callable
from typing import TypeVar

ValueT = TypeVar('ValueT')
KeyT = TypeVar('KeyT')


class LazyLoadingDict(dict[KeyT, ValueT]):
    """A dictionary of memoized objects created from their keys.

    Values may also be assigned directly, bypassing the factory; a key
    that already has a value must be deleted before it is assigned
    again.

    Expected behaviour: raises the errors of the factory function,
    such as ValidationError and ValueError.
    """

    def __init__(
        self,
        key_creator_func: Callable[[KeyT], ValueT],
        destructor_func: Callable[[ValueT], None] | None = None,
    ):
        super().__init__()
        self._key_creator_func = key_creator_func
        self._destructor_func = destructor_func

    def _destroy_value(self, value: ValueT) -> None:
        if self._destructor_func:
            self._destructor_func(value)
            return
        for method in ("close", "dispose"):
            func = getattr(value, method, None)
            if callable(func):
                func()
                return

    def __getitem__(self, key: KeyT) -> ValueT:
        if key in self:
            return super().__getitem__(key)

        value: ValueT = self._key_creator_func(key)
        super().__setitem__(key, value)
        return value

    def __setitem__(self, key: KeyT, value: ValueT) -> None:
        """Set a value directly, bypassing the factory function.

        Raises:
            ValueError: If the key already exists in the dictionary.
        """
        if key in self:
            raise ValueError(
                f"Key '{key}' already exists. Delete it first to overwrite."
            )
        super().__setitem__(key, value)

    def __delitem__(self, key: KeyT) -> None:
        if key in self:
            self._destroy_value(super().__getitem__(key))
        super().__delitem__(key)

    def clear(self) -> None:
        for value in list(self.values()):
            self._destroy_value(value)
        super().clear()
