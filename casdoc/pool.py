"""Bounded fan-out for coroutine work."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def gather_bounded(
    items: Iterable[T],
    worker: Callable[[T], Awaitable[R]],
    limit: int = 1,
    *,
    semaphore: asyncio.Semaphore | None = None,
) -> list[R]:
    """Run ``worker(item)`` for every item, at most *limit* at a time.

    Pass a shared *semaphore* instead of a *limit* to cap several fan-outs
    with one bound.  Results come back in input order.  Exceptions propagate
    as with :func:`asyncio.gather`; workers are expected to contain their own
    failures.
    """
    sem = semaphore if semaphore is not None else asyncio.Semaphore(max(1, limit))

    async def run(item: T) -> R:
        async with sem:
            return await worker(item)

    return await asyncio.gather(*(run(item) for item in items))
