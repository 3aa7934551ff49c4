"""Bounded fan-out over a thread pool."""

import contextvars
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def run_concurrently(func: Callable[[T], R], items: Iterable[T], max_workers: int) -> List[R]:
    """Apply ``func`` to every item using at most ``max_workers`` threads.

    Results are returned in input order. Each call runs in a copy of the
    caller's context, so logging context fields reach worker threads. With
    one worker (or one item) everything runs inline on the calling thread.
    ``func`` is expected to handle its own errors; the first exception that
    escapes it is re-raised here.

    Args:
        func: Callable applied to each item
        items: Items to process
        max_workers: Upper bound on concurrent calls

    Returns:
        List of results, one per item
    """
    items = list(items)
    if max_workers <= 1 or len(items) <= 1:
        return [func(item) for item in items]

    with ThreadPoolExecutor(
        max_workers=min(max_workers, len(items)),
        thread_name_prefix="notifications-email",
    ) as executor:
        futures = [
            executor.submit(contextvars.copy_context().run, func, item) for item in items
        ]
        return [future.result() for future in futures]
