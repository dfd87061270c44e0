"""LangChain chat models for the agents

Agents plan by calling a LangChain `BaseChatModel`. This package
creates the model objects from the settings in config.toml and
memoizes them.
"""

# pyright: reportUnusedImport=false
# flake8: noqa

from .lazy_dict import LazyLoadingDict
from .models import (
    langchain_models,
    create_model_from_spec,
    create_model_from_settings,
)
