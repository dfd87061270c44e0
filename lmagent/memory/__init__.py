# pyright: reportUnusedImport=false
# flake8: noqa

from .base import (
    BaseMemory,
    SimpleMemory,
    DummyMemory,
    WindowBufferMemory,
    create_memory,
)
from .shared import ReadWriteLock, SharedMemory
