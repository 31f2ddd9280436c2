"""Bounded asyncio worker pool over a pre-filled work queue."""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

T = TypeVar("T")


async def run_bounded(
    items: Iterable[T],
    limit: int,
    handler: Callable[[T], Awaitable[None]],
) -> None:
    """
    Run ``handler`` over every item with at most ``limit`` calls in flight.

    Items are queued up front and each worker claims the next one with
    ``get_nowait``, so every item is handled by exactly one worker. If a handler
    raises, the remaining workers are cancelled and the error propagates.
    """
    queue: asyncio.Queue[T] = asyncio.Queue()
    for item in items:
        queue.put_nowait(item)

    async def worker() -> None:
        while True:
            try:
                item = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            await handler(item)

    worker_count = min(max(limit, 1), queue.qsize())
    workers = [asyncio.create_task(worker()) for _ in range(worker_count)]
    try:
        await asyncio.gather(*workers)
    finally:
        pending = [task for task in workers if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
