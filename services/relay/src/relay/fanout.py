"""
Concurrent fan-out with an isolated-failure join.

Every task runs to completion (or to its timeout) regardless of what
happens to its siblings, and the caller receives one :class:`Outcome`
per task in submission order.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Sequence
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Outcome:
    """Result of one fanned-out task."""

    label: str
    value: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def _bounded(
    aw: Awaitable[Any], timeout: float | None, semaphore: asyncio.Semaphore | None
) -> Any:
    if semaphore is None:
        return await _timed(aw, timeout)
    async with semaphore:
        return await _timed(aw, timeout)


async def _timed(aw: Awaitable[Any], timeout: float | None) -> Any:
    if timeout is None:
        return await aw
    return await asyncio.wait_for(aw, timeout)


async def gather_settled(
    tasks: Sequence[tuple[str, Awaitable[Any]]],
    *,
    timeout: float | None = None,
    limit: int | None = None,
) -> list[Outcome]:
    """Run labelled awaitables concurrently and collect every outcome.

    Unlike ``asyncio.TaskGroup`` a failure never cancels the remaining
    tasks.  A task exceeding *timeout* is recorded as a
    ``TimeoutError`` failure.  With *limit* at most that many tasks run at
    once; the timeout starts when a task gets its slot.

    Args:
        tasks: ``(label, awaitable)`` pairs.
        timeout: Optional per-task timeout in seconds.
        limit: Optional cap on concurrently running tasks.

    Returns:
        One ``Outcome`` per task, in the order given.
    """
    if not tasks:
        return []
    semaphore = asyncio.Semaphore(limit) if limit else None
    results = await asyncio.gather(
        *(_bounded(aw, timeout, semaphore) for _, aw in tasks),
        return_exceptions=True,
    )
    outcomes: list[Outcome] = []
    for (label, _), result in zip(tasks, results):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            outcomes.append(Outcome(label=label, error=result))
        else:
            outcomes.append(Outcome(label=label, value=result))
    return outcomes
