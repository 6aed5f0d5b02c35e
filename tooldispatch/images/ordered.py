"""Ordered iteration with per-item failure isolation.

Contract:
    `collect_in_order(items, func)` awaits `func(item)` for every item and returns
    the successes in input order alongside `(item, exception)` failures. One
    failing item never cancels, reorders, or hides the others.

Concurrency:
    - `max_concurrency == 1`: items run strictly one after another.
    - `max_concurrency > 1`: items run under an `asyncio.Semaphore`; reported order
      still follows the input.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, Iterable, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class OrderedCollection(Generic[T, R]):
    successes: list[R] = field(default_factory=list)
    failures: list[tuple[T, Exception]] = field(default_factory=list)


async def collect_in_order(
    items: Iterable[T],
    func: Callable[[T], Awaitable[R]],
    max_concurrency: int = 1,
) -> OrderedCollection[T, R]:
    """Apply `func` to each item, isolating failures.

    Args:
        items: Inputs in the order results must be reported.
        func: Async per-item operation.
        max_concurrency: Upper bound on in-flight calls; values below 1 act as 1.

    Returns:
        `OrderedCollection` with successes and failures, each in input order.

    Edge cases:
        `asyncio.CancelledError` is not an `Exception` and still propagates.
    """
    items = list(items)
    collection: OrderedCollection[T, R] = OrderedCollection()

    if max_concurrency <= 1:
        for item in items:
            try:
                collection.successes.append(await func(item))
            except Exception as exc:
                collection.failures.append((item, exc))
        return collection

    semaphore = asyncio.Semaphore(max_concurrency)

    async def bounded(item: T) -> R:
        async with semaphore:
            return await func(item)

    outcomes = await asyncio.gather(*(bounded(item) for item in items), return_exceptions=True)
    for item, outcome in zip(items, outcomes):
        if isinstance(outcome, Exception):
            collection.failures.append((item, outcome))
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            collection.successes.append(outcome)
    return collection
