# pyright: reportUnusedImport=false
# flake8: noqa

from .base import Chain, ChainInput, ChainOutput
from .llm import LLMChain
from .conversational import ConversationalChain
from .sequential import SequentialChain
