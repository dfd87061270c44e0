"""
Memory shared between concurrent executor runs.

`SharedMemory` guards a memory with a reader/writer lock. Runs read the
history concurrently when they start; the write at the end of a
successful run is exclusive. A waiting writer blocks new readers, so
that a stream of runs starting on the same memory does not postpone
the writes indefinitely.

Example:
    ```python
    shared = SharedMemory(SimpleMemory())

    async with shared.read() as memory:
        history = memory.messages()

    async with shared.write() as memory:
        memory.update(human_message, steps, final_answer)
    ```
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from .base import BaseMemory


class ReadWriteLock:
    """An asyncio lock with shared readers and an exclusive writer."""

    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._readers: int = 0
        self._writer: bool = False
        self._waiting_writers: int = 0

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def writing(self) -> bool:
        return self._writer

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(
                lambda: not self._writer and self._waiting_writers == 0
            )
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                self._cond.notify_all()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        async with self._cond:
            self._waiting_writers += 1
            try:
                await self._cond.wait_for(
                    lambda: not self._writer and self._readers == 0
                )
            finally:
                self._waiting_writers -= 1
                # readers may proceed if this writer gave up waiting
                self._cond.notify_all()
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()


class SharedMemory:
    """A memory guarded by a ReadWriteLock."""

    def __init__(self, memory: BaseMemory) -> None:
        self.memory = memory
        self.lock = ReadWriteLock()

    @asynccontextmanager
    async def read(self) -> AsyncIterator[BaseMemory]:
        async with self.lock.read():
            yield self.memory

    @asynccontextmanager
    async def write(self) -> AsyncIterator[BaseMemory]:
        async with self.lock.write():
            yield self.memory
