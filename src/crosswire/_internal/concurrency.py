"""asyncio helpers shared by the kernel (internal)."""

import asyncio
from typing import Awaitable, Iterable, List, Optional, TypeVar

T = TypeVar("T")


async def gather_fail_fast(
    awaitables: Iterable[Awaitable[T]],
    limit: Optional[int] = None,
) -> List[T]:
    """Await all awaitables concurrently and return their results in input order.

    On the first failure every outstanding task is cancelled and the failure
    is re-raised unchanged. ``limit`` bounds how many run at once.
    """
    semaphore = asyncio.Semaphore(limit) if limit else None

    async def run(aw: Awaitable[T]) -> T:
        if semaphore is None:
            return await aw
        async with semaphore:
            return await aw

    tasks = [asyncio.ensure_future(run(aw)) for aw in awaitables]
    if not tasks:
        return []

    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise

    if pending:
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    # Retrieve every failure, then report the first in input order
    failures = [
        task.exception()
        for task in tasks
        if task.done() and not task.cancelled() and task.exception() is not None
    ]
    if failures:
        raise failures[0]

    return [task.result() for task in tasks]
