"""
Creation of the LangChain chat model objects that agents use to plan.

The model is specified by a LanguageModelSettings object, given in
code or read from the `model` section of config.toml. The created
objects are memoized in the `langchain_models` repository, so that
equal settings give the same object.

Examples:

```python
from lmagent.language_models.models import (
    create_model_from_spec,
    create_model_from_settings,
)
from lmagent.config import Settings

model = create_model_from_spec("OpenAI/gpt-4.1-mini", temperature=0)
model = create_model_from_settings(Settings().model)
```

The 'Debug' source creates a fake model that needs no provider: it
answers with the message in provider_params['message'], if given, or
else with a sequence of numbered final answers.

Behaviour:
    Raises ImportError if the provider package is not installed, and
    the exceptions of LangChain.

Note:
    Support for new model sources should be added here by extending
    the match ... case statement in _create_model_instance, and the
    ModelSource literal in the config module.
"""

from typing import Any

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.language_models.fake_chat_models import (
    GenericFakeChatModel,
)

from lmagent.config.config import (
    LanguageModelSettings,
    ModelSource,
    ProviderParam,
)
from .lazy_dict import LazyLoadingDict
from .message_iterator import yield_message, yield_constant_message


def _create_model_instance(
    model: LanguageModelSettings,
) -> BaseChatModel:
    """
    Factory function to create Langchain models while checking
    permissible sources.
    """
    model_source: ModelSource = model.get_model_source()
    model_name: str = model.get_model_name()
    kwargs: dict[str, Any]
    match model_source:
        case "Anthropic":
            try:
                from langchain_anthropic.chat_models import (
                    ChatAnthropic,
                )
            except ImportError as e:
                raise ImportError(
                    "Anthropic models require the "
                    "'langchain-anthropic' package. "
                    "Install it with: pip install langchain-anthropic"
                ) from e

            kwargs = {
                "model_name": model_name,
                "temperature": model.temperature,
                "max_tokens_to_sample": model.max_tokens or 1024,
                "timeout": model.timeout,
                "max_retries": model.max_retries,
                "stop": None,
            }
            kwargs.update(model.provider_params)
            return ChatAnthropic(**kwargs)

        case "Gemini":
            try:
                from langchain_google_genai import (
                    ChatGoogleGenerativeAI,
                )
            except ImportError as e:
                raise ImportError(
                    "Gemini models require the "
                    "'langchain-google-genai' package. "
                    "Install it with: pip install "
                    "langchain-google-genai"
                ) from e

            kwargs = {
                "model": model_name,
                "temperature": model.temperature,
            }
            if model.max_tokens is not None:
                kwargs["max_output_tokens"] = model.max_tokens
            if model.timeout is not None:
                kwargs["request_timeout"] = model.timeout
            kwargs.update(model.provider_params)
            return ChatGoogleGenerativeAI(**kwargs)

        case "Mistral":
            try:
                from langchain_mistralai.chat_models import (
                    ChatMistralAI,
                )
            except ImportError as e:
                raise ImportError(
                    "Mistral models require the 'langchain-mistralai'"
                    " package. Install it with: pip install "
                    "langchain-mistralai"
                ) from e

            kwargs = {
                "model_name": model_name,
                "temperature": model.temperature,
                "max_retries": model.max_retries,
            }
            if model.max_tokens is not None:
                kwargs["max_tokens"] = model.max_tokens
            if model.timeout is not None:
                kwargs["timeout"] = int(model.timeout)
            kwargs.update(model.provider_params)
            return ChatMistralAI(**kwargs)

        case "OpenAI":
            try:
                from langchain_openai.chat_models import ChatOpenAI
            except ImportError as e:
                raise ImportError(
                    "OpenAI models require the 'langchain-openai'"
                    " package. Install it with: pip install "
                    "langchain-openai"
                ) from e

            kwargs = {
                "model": model_name,
                "temperature": model.temperature,
                "max_retries": model.max_retries,
                "use_responses_api": False,
            }
            if model.max_tokens is not None:
                kwargs["max_tokens"] = model.max_tokens
            if model.timeout is not None:
                kwargs["timeout"] = model.timeout
            kwargs.update(model.provider_params)
            return ChatOpenAI(**kwargs)

        case "Debug":
            if "message" in model.provider_params:
                return GenericFakeChatModel(
                    name=f"Debug constant messages ({model_name})",
                    messages=yield_constant_message(
                        str(model.provider_params["message"])
                    ),
                )
            return GenericFakeChatModel(
                name=f"Debug numbered answers ({model_name})",
                messages=yield_message(),
            )

        case _:
            raise ValueError(
                f"Unreachable code reached: invalid source {model_source}"
            )


# Public interface----------------------------------------------
langchain_models: LazyLoadingDict[LanguageModelSettings, BaseChatModel] = \
    LazyLoadingDict(_create_model_instance)


def create_model_from_spec(
    model: str,
    *,
    temperature: float = 0.1,
    max_tokens: int | None = None,
    max_retries: int = 2,
    timeout: float | None = None,
    provider_params: dict[str, ProviderParam] | None = None,
) -> BaseChatModel:
    """
    Create langchain model from specifications.

    Args:
        model: the model in the form source/model, such as
            'OpenAI/gpt-4o'

    Returns:
        a Langchain model object.

    Raises ValueError, ValidationError, ImportError

    Example:
        ```python
        model = create_model_from_spec("Debug/test")
        ```
    """
    spec = LanguageModelSettings(
        model=model,
        temperature=temperature,
        max_tokens=max_tokens,
        max_retries=max_retries,
        timeout=timeout,
        provider_params=provider_params or {},
    )
    return langchain_models[spec]


def create_model_from_settings(
    settings: LanguageModelSettings,
) -> BaseChatModel:
    """
    Create langchain model from a LanguageModelSettings object.

    Args:
        settings: a LanguageModelSettings object containing model
            configuration.

    Returns:
        a Langchain model object.

    Raises ValueError, ValidationError, ImportError
    """
    return langchain_models[settings]
