"""Scalar grid operations: normalization, box-blur erosion, statistics."""

from typing import NamedTuple

import numpy as np
import structlog
from numpy.typing import NDArray
from scipy import ndimage

logger = structlog.get_logger()


class GridStats(NamedTuple):
    """Summary statistics of a scalar grid."""

    min: float
    max: float
    mean: float


def normalize(grid: NDArray[np.floating], name: str = "grid") -> NDArray[np.float32]:
    """Linearly rescale a grid to [0, 1] using its global min and max.

    A constant grid has no range to rescale by; it maps to all zeros rather
    than dividing by zero.

    Args:
        grid: Input 2D array.
        name: Grid name used in log events.

    Returns:
        New float32 array with min 0.0 and max 1.0 (or all zeros).
    """
    values = np.asarray(grid, dtype=np.float64)
    if values.size == 0:
        return np.zeros(values.shape, dtype=np.float32)

    low = float(values.min())
    high = float(values.max())
    value_range = high - low

    if value_range <= 0.0 or not np.isfinite(value_range):
        logger.debug("degenerate_grid", grid=name, value=low)
        return np.zeros(values.shape, dtype=np.float32)

    result = ((values - low) / value_range).astype(np.float32)
    # Pin the extremes exactly after the float32 cast
    result[values == low] = 0.0
    result[values == high] = 1.0
    return result


def smooth(grid: NDArray[np.floating], iterations: int) -> NDArray[np.float32]:
    """Apply repeated 3x3 mean filtering to interior cells.

    Border rows and columns keep their values on every pass. Each pass
    reads only the previous pass's result.

    Args:
        grid: Input 2D array (not modified).
        iterations: Number of passes.

    Returns:
        Smoothed float32 copy of the grid.
    """
    result = np.array(grid, dtype=np.float32, copy=True)
    height, width = result.shape
    if iterations <= 0 or height < 3 or width < 3:
        return result

    for _ in range(iterations):
        blurred = ndimage.uniform_filter(result, size=3, mode="nearest")
        # uniform_filter returns a new array, so result is still the old pass
        result[1:-1, 1:-1] = blurred[1:-1, 1:-1]

    return result


def statistics(grid: NDArray) -> GridStats:
    """Compute min, max and mean of a grid without modifying it."""
    values = np.asarray(grid, dtype=np.float64)
    if values.size == 0:
        return GridStats(0.0, 0.0, 0.0)
    return GridStats(
        min=float(values.min()),
        max=float(values.max()),
        mean=float(values.mean()),
    )


def boolean_counts(grid: NDArray[np.bool_]) -> tuple[int, int]:
    """Count True and False cells.

    Returns:
        Tuple of (true_count, false_count).
    """
    values = np.asarray(grid, dtype=bool)
    true_count = int(np.count_nonzero(values))
    return true_count, int(values.size - true_count)


def log_grid_stats(grid: NDArray, name: str) -> GridStats:
    """Log min/max/mean of a scalar grid and return them."""
    stats = statistics(grid)
    logger.debug(
        "grid_stats",
        grid=name,
        min=round(stats.min, 4),
        max=round(stats.max, 4),
        mean=round(stats.mean, 4),
    )
    return stats


def log_boolean_stats(grid: NDArray[np.bool_], name: str) -> tuple[int, int]:
    """Log true/false counts of a boolean grid and return them."""
    true_count, false_count = boolean_counts(grid)
    logger.debug(
        "boolean_grid_stats",
        grid=name,
        total=true_count + false_count,
        true=true_count,
        false=false_count,
    )
    return true_count, false_count
