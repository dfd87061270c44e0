"""
Token usage accounting.

A `TokenUsage` object records the tokens consumed by one model call.
The usage of a whole run is obtained by merging the usage of all
calls; the merge is a component-wise sum, and `merge_options` treats
a missing usage (None) as the neutral element, so that the running
total can start from None:

    ```python
    total: TokenUsage | None = None
    for usage in usages:
        total = merge_options(total, usage)
    ```
"""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TokenUsage(BaseModel):
    """Tokens consumed by one or more model calls. The total is
    always the sum of prompt and completion tokens; it may be omitted
    in the constructor."""

    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode='before')
    @classmethod
    def _fill_total(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get('total_tokens') is None:  # type: ignore
            data = dict(data)  # type: ignore
            data['total_tokens'] = data.get(
                'prompt_tokens', 0
            ) + data.get('completion_tokens', 0)
        return data

    @model_validator(mode='after')
    def _check_total(self) -> Self:
        if self.total_tokens != self.prompt_tokens + self.completion_tokens:
            raise ValueError(
                f"total_tokens ({self.total_tokens}) must equal "
                "prompt_tokens + completion_tokens "
                f"({self.prompt_tokens + self.completion_tokens})"
            )
        return self

    def merge(self, other: 'TokenUsage') -> 'TokenUsage':
        """Component-wise sum of two usage records."""
        return TokenUsage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens
            + other.completion_tokens,
        )

    @classmethod
    def from_usage_metadata(
        cls, metadata: dict[str, Any] | None
    ) -> 'TokenUsage | None':
        """Convert the usage_metadata of a LangChain AIMessage. The
        provider's own total is not used, as it may count tokens
        (cached or reasoning tokens) outside input and output."""
        if not metadata:
            return None
        return cls(
            prompt_tokens=int(metadata.get('input_tokens', 0) or 0),
            completion_tokens=int(metadata.get('output_tokens', 0) or 0),
        )


def merge_options(
    a: TokenUsage | None, b: TokenUsage | None
) -> TokenUsage | None:
    """Merge two optional usage records, None being the identity."""
    match (a, b):
        case (None, None):
            return None
        case (None, usage) | (usage, None):
            return usage
        case _:
            return a.merge(b)  # type: ignore
