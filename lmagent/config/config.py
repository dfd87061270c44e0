"""
Read and write the configuration file.

The configuration groups three sections:

- `model`: the language model that drives the agent, given as a
    'provider/model' specification (e.g. 'OpenAI/gpt-4.1-mini').
- `agent`: the prompts, the instructor (the parser of the model
    output) and the memory used by the agent.
- `executor`: the limits of the plan/act loop.

The settings are read from config.toml in the working directory and
may be overridden by environment variables with the prefix LMAGENT_
(nested fields use '__' as delimiter, e.g.
LMAGENT_EXECUTOR__MAX_ITERATIONS=5).

Example:
    ```python
    from lmagent.config import Settings, load_settings

    settings = Settings()  # config.toml + environment
    settings = load_settings("my_config.toml")
    print(settings.executor.max_iterations)
    ```
"""

from pathlib import Path
from typing import Any, Literal, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

# Supported model sources. These sources must also be handled
# in the factory function of language_models/models.py
ModelSource = Literal[
    'OpenAI', 'Anthropic', 'Mistral', 'Gemini', 'Debug'
]
InstructorName = Literal['default', 'qwen3']
MemoryKind = Literal['simple', 'window', 'dummy']

# Values allowed in provider_params
ProviderParam = str | int | float | bool | list[str]

DEFAULT_CONFIG_FILE = "config.toml"
ENV_PREFIX = "LMAGENT_"


class LanguageModelSettings(BaseModel):
    """
    Specification of language sources and models.

    Attributes:
        model: model specification, 'provider/model'
        temperature: float between 0.0 and 2.0
        max_tokens: max number of generated tokens
        max_retries: max number retries attempts
        timeout: timeout when waiting for response
        provider_params: provider-specific parameters
    """

    model: str = Field(
        description="Model specification in the form "
        + "'model_provider/model' (e.g., 'OpenAI/gpt-4o')"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="Controls randomness in model responses (0.0-2.0)",
    )
    max_tokens: int | None = Field(
        default=None,
        ge=1,
        description="Maximum number of tokens to generate",
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        description="Maximum number of retry attempts",
    )
    timeout: float | None = Field(
        default=None, gt=0, description="Request timeout in seconds"
    )
    provider_params: dict[str, ProviderParam] = Field(
        default_factory=dict,
        description="Provider-specific parameters (e.g., top_p)",
    )

    model_config = ConfigDict(frozen=True, extra='forbid')

    def __hash__(self) -> int:
        """Hash on the field values, so that settings objects can key
        the model repository."""
        params = tuple(
            (k, tuple(v) if isinstance(v, list) else v)
            for k, v in sorted(self.provider_params.items())
        )
        return hash(
            (
                self.model,
                self.temperature,
                self.max_tokens,
                self.max_retries,
                self.timeout,
                params,
            )
        )

    def get_model_source(self) -> ModelSource:
        return self.model.split('/')[0]  # type: ignore

    def get_model_name(self) -> str:
        return self.model.split('/')[1]

    @field_validator('model', mode='after')
    @classmethod
    def validate_model_spec(cls, spec: str) -> str:
        cleaned_spec = spec.strip()
        if not cleaned_spec:
            raise ValueError("Model specification is empty")
        if '\n' in cleaned_spec or '\r' in cleaned_spec:
            raise ValueError(
                "Model specification cannot contain newlines or carriage"
                + " returns."
            )
        tokens = cleaned_spec.split('/')
        if len(tokens) != 2:
            raise ValueError(
                "Model specification must contain the model provider and "
                + "the model name separated by a single '/'.",
            )
        source = tokens[0].strip()
        if source not in ModelSource.__args__:
            raise ValueError(
                f"Invalid model provider: '{source}'. "
                + f"Must be one of {ModelSource.__args__}."
            )
        return source + '/' + tokens[1].strip()

    @model_validator(mode='after')
    def validate_provider_params(self) -> Self:
        """Validate provider-specific parameters based on the source."""
        ALLOWED_PARAMS = {
            'OpenAI': {
                'frequency_penalty',
                'presence_penalty',
                'top_p',
                'seed',
                'stop',
            },
            'Anthropic': {'top_p', 'top_k', 'stop_sequences'},
            'Mistral': {'top_p', 'random_seed', 'safe_mode'},
            'Gemini': {'top_p', 'top_k', 'candidate_count'},
            'Debug': {'message'},
        }

        source: ModelSource = self.get_model_source()
        allowed = ALLOWED_PARAMS.get(source, set())
        invalid_params = set(self.provider_params.keys()) - allowed
        if invalid_params:
            raise ValueError(
                f"Invalid provider_params for {source}: "
                f"{invalid_params}. Allowed: {allowed}"
            )
        return self


class ExecutorSettings(BaseModel):
    """
    Limits of the plan/act loop of the agent executor.

    Attributes:
        max_iterations: number of tool steps after which the model is
            forced to give a final answer (None: no limit)
        max_consecutive_fails: number of failures without an
            intervening success after which the run is aborted
            (None: no limit)
        break_if_tool_error: abort the run when a tool fails, instead
            of counting the error as a failure and planning again
    """

    max_iterations: int | None = Field(default=10, ge=1)
    max_consecutive_fails: int | None = Field(default=3, ge=1)
    break_if_tool_error: bool = False

    model_config = ConfigDict(frozen=True, extra='forbid')


class AgentSettings(BaseModel):
    """
    Prompts and parsing of the agent.

    Attributes:
        system_prompt: system prompt (None: the default prompt)
        initial_prompt: template of the human message; '{input}' is
            replaced by the user input
        instructor: the parser of the model output
        memory: the conversational memory kind
        window_size: number of messages kept by the 'window' memory
    """

    system_prompt: str | None = None
    initial_prompt: str = "{input}"
    instructor: InstructorName = 'default'
    memory: MemoryKind = 'simple'
    window_size: int = Field(default=10, ge=1)

    model_config = ConfigDict(frozen=True, extra='forbid')

    @field_validator('initial_prompt', mode='after')
    @classmethod
    def validate_initial_prompt(cls, prompt: str) -> str:
        if not prompt.strip():
            raise ValueError("The initial prompt is empty")
        return prompt


class Settings(BaseSettings):
    """
    A pydantic settings object containing the fields with the
    configuration information.

    Settings are saved and read from the configuration file in TOML
    format.

    Attributes:
        model: the language model of the agent
        agent: agent prompts, instructor and memory
        executor: limits of the executor loop

    Note:
        The Settings object reads from config.toml in the project
        folder. Use load_settings to read from another file.
    """

    model: LanguageModelSettings = Field(
        default_factory=lambda: LanguageModelSettings(
            model="OpenAI/gpt-4.1-mini",
        ),
        description="Language model driving the agent",
    )
    agent: AgentSettings = Field(
        default_factory=AgentSettings,
        description="Agent prompts and parsing",
    )
    executor: ExecutorSettings = Field(
        default_factory=ExecutorSettings,
        description="Executor loop limits",
    )

    model_config = SettingsConfigDict(
        toml_file=DEFAULT_CONFIG_FILE,
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        frozen=True,
        validate_assignment=True,
        extra='allow',
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize the order of settings sources."""
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls),
        )

    def __str__(self) -> str:
        return serialize_settings(self)


def _add_table(tbl: Any, data: dict[str, Any]) -> None:
    import tomlkit

    for key, value in data.items():
        # None values can't be serialized to TOML
        if value is None:
            continue
        if isinstance(value, dict):
            sub = tomlkit.table()
            _add_table(sub, value)  # type: ignore
            tbl[key] = sub
        else:
            tbl[key] = value


def serialize_settings(sets: BaseSettings) -> str:
    """Transform the settings into a string in TOML format.

    Args:
        sets: The settings object to serialize

    Returns:
        TOML formatted string representation of settings
    """
    import tomlkit

    doc = tomlkit.document()
    doc.add(tomlkit.comment("Agent configuration file"))
    doc.add(tomlkit.nl())
    _add_table(doc, sets.model_dump())
    return tomlkit.dumps(doc)


def export_settings(
    settings: BaseSettings, file_path: str | Path | None = None
) -> None:
    """Save settings to file in TOML format.

    Args:
        settings: A settings object to save
        file_path: The settings file path (defaults to config.toml)

    Raises:
        OSError: If file cannot be written
    """
    file_path = Path(file_path or DEFAULT_CONFIG_FILE)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with file_path.open("w", encoding="utf-8") as f:
        f.write(serialize_settings(settings))


def create_default_config_file(
    file_path: str | Path | None = None,
) -> None:
    """Create a default settings file.

    Args:
        file_path: Target file path (defaults to config.toml)

    Example:
        ```python
        # Creates config.toml in base folder with default values
        create_default_config_file()

        # Creates custom config file
        create_default_config_file(file_path="custom_config.toml")
        ```
    """
    file_path = Path(file_path or DEFAULT_CONFIG_FILE)
    if file_path.exists():
        # otherwise, it will be read in
        file_path.unlink()

    settings = Settings()
    export_settings(settings, file_path)


def print_settings(settings: BaseSettings) -> None:
    """Print settings in TOML format to stdout."""
    print(serialize_settings(settings))


def load_settings(file_path: str | Path | None = None) -> Settings:
    """Load settings from TOML file.

    Args:
        file_path: Path to settings file (defaults to config.toml)

    Returns:
        Loaded settings object

    Raises:
        FileNotFoundError: If settings file doesn't exist
        ValueError: If settings file is invalid
    """
    file_path = Path(file_path or DEFAULT_CONFIG_FILE)
    if not file_path.exists():
        raise FileNotFoundError(
            f"Settings file not found: {file_path}"
        )

    try:
        # A temporary settings class reading the specified file
        class TempSettings(Settings):
            model_config = SettingsConfigDict(
                toml_file=str(file_path),
                env_prefix=ENV_PREFIX,
                env_nested_delimiter="__",
                frozen=True,
                validate_assignment=True,
                extra='allow',
            )

        return TempSettings()
    except Exception as e:
        raise ValueError(
            f"Failed to load settings from {file_path}: {e}"
        ) from e


# Create a default config.toml file, if there is none.
if not Path(DEFAULT_CONFIG_FILE).exists():
    create_default_config_file()
