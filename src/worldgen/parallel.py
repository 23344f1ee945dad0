"""Row-band fan-out for grid computations."""

from collections.abc import Callable, Iterable
from concurrent import futures
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")


def row_bands(height: int, workers: int) -> list[tuple[int, int]]:
    """Split ``range(height)`` into at most ``workers`` contiguous bands.

    Args:
        height: Number of rows.
        workers: Desired number of bands.

    Returns:
        List of (start, stop) row ranges covering every row exactly once.
    """
    count = max(1, min(workers, height))
    base, extra = divmod(height, count)
    bands = []
    start = 0
    for i in range(count):
        stop = start + base + (1 if i < extra else 0)
        if stop > start:
            bands.append((start, stop))
        start = stop
    return bands


def run_in_bands(
    height: int,
    workers: int,
    fn: Callable[[int, int], None],
) -> None:
    """Call ``fn(start, stop)`` for disjoint row bands, in parallel when asked.

    Each call must only write rows in its own band of a pre-sized output,
    so no locking is needed.

    Args:
        height: Number of rows in the output grid.
        workers: Thread count; 1 runs inline.
        fn: Band worker.
    """
    bands = row_bands(height, workers)
    if workers <= 1 or len(bands) <= 1:
        for start, stop in bands:
            fn(start, stop)
        return

    with futures.ThreadPoolExecutor(max_workers=len(bands)) as executor:
        pending = [executor.submit(fn, start, stop) for start, stop in bands]
        for future in pending:
            # Re-raise worker exceptions in the caller
            future.result()


def map_ordered(
    fn: Callable[[T], R],
    items: Iterable[T],
    workers: int,
) -> list[R]:
    """Map ``fn`` over ``items`` and return results in input order."""
    items = list(items)
    if workers <= 1 or len(items) <= 1:
        return [fn(item) for item in items]

    with futures.ThreadPoolExecutor(max_workers=min(workers, len(items))) as executor:
        return list(executor.map(fn, items))
