"""Supervised fire-and-forget tasks."""

import asyncio
from collections import deque
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any

from loguru import logger


@dataclass(frozen=True)
class TaskFailure:
    label: str
    error: BaseException


class TaskSupervisor:
    """
    Runs side effects (pairing replies, ack reactions) in the background.

    Keeps a strong reference to every task until it finishes, logs failures
    with the task label and records them in :attr:`failures`. Failures never
    reach the code that spawned the task.
    """

    def __init__(self, max_failures: int = 100) -> None:
        self._tasks: set[asyncio.Task] = set()
        self.failures: deque[TaskFailure] = deque(maxlen=max_failures)

    def spawn(self, coro: Coroutine[Any, Any, Any], label: str) -> asyncio.Task:
        task = asyncio.create_task(self._guard(coro, label), name=label)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guard(self, coro: Coroutine[Any, Any, Any], label: str) -> bool:
        try:
            await coro
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"{label} failed: {e}")
            self.failures.append(TaskFailure(label=label, error=e))
            return False
        return True

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def join(self) -> None:
        """Wait for every in-flight task."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
