"""Hydrology: river source selection, greedy flow tracing with branches, lakes.

Rivers descend from high ground by always stepping to the lowest neighbour
under a local water level. When no neighbour is low enough the water level
rises (the river pools) until it can spill over. Lower neighbours along the
way spawn branch rivers with half of the remaining path budget.
"""

import math
from dataclasses import dataclass, field

import numpy as np
import structlog
from numpy.typing import NDArray
from scipy import ndimage

from .config import HydrologyConfig
from .noise import make_rng

logger = structlog.get_logger()

# D8 directions: N, NE, E, SE, S, SW, W, NW (clockwise from north)
D8_DY = np.array([-1, -1, 0, 1, 1, 1, 0, -1], dtype=np.int32)
D8_DX = np.array([0, 1, 1, 1, 0, -1, -1, -1], dtype=np.int32)
D8_DISTANCE = np.array(
    [1.0, math.sqrt(2.0), 1.0, math.sqrt(2.0), 1.0, math.sqrt(2.0), 1.0, math.sqrt(2.0)]
)

_NEIGHBOUR_KERNEL = np.ones((3, 3), dtype=np.float64)


@dataclass
class River:
    """A traced river: its source, main-stem path and branch count."""

    source: tuple[int, int]  # (x, y)
    budget: int
    path: list[tuple[int, int]] = field(default_factory=list)  # (x, y) main stem
    branches: int = 0


@dataclass
class _Trace:
    """In-progress walk of one river or branch on the work-list."""

    x: int
    y: int
    water_level: float
    budget: int
    depth: int
    path: list[tuple[int, int]] | None = None
    pending: list[tuple[int, int]] = field(default_factory=list)


def select_river_source(
    elevation: NDArray[np.float32],
    threshold: float,
    rng: np.random.Generator,
    max_attempts: int,
) -> tuple[int, int] | None:
    """Draw random cells until one lies strictly above ``threshold``.

    Args:
        elevation: Normalized elevation field.
        threshold: Minimum (exclusive) source elevation.
        rng: Random number generator for this river.
        max_attempts: Maximum number of draws.

    Returns:
        (x, y) of the source, or None if no draw succeeded.
    """
    height, width = elevation.shape
    if elevation.size == 0 or not np.any(elevation > threshold):
        return None

    for _ in range(max_attempts):
        x = int(rng.integers(width))
        y = int(rng.integers(height))
        if elevation[y, x] > threshold:
            return x, y
    return None


def smooth_flow(flow: NDArray[np.float32]) -> NDArray[np.float32]:
    """Average each flowing cell with its in-bounds 8 neighbours.

    Cells with zero flow are left untouched. Edge cells average over the
    neighbours that exist.

    Args:
        flow: Accumulated flow grid.

    Returns:
        Smoothed float32 flow grid.
    """
    values = np.asarray(flow, dtype=np.float64)
    if values.size == 0:
        return np.zeros(values.shape, dtype=np.float32)

    sums = ndimage.convolve(values, _NEIGHBOUR_KERNEL, mode="constant", cval=0.0)
    counts = ndimage.convolve(
        np.ones_like(values), _NEIGHBOUR_KERNEL, mode="constant", cval=0.0
    )
    smoothed = np.where(values > 0, sums / counts, values)
    return smoothed.astype(np.float32)


def mark_lakes(elevation: NDArray[np.float32], lake_elevation: float) -> NDArray[np.bool_]:
    """Mark cells below ``lake_elevation`` as lakes."""
    return np.asarray(elevation) < lake_elevation


class HydrologySimulator:
    """Traces rivers over an elevation field and accumulates flow.

    Rivers are traced one at a time, and each river draws from its own
    random stream seeded by ``seed + river_seed_offset + index``.
    """

    def __init__(
        self,
        elevation: NDArray[np.float32],
        config: HydrologyConfig,
        seed: int,
    ):
        """Initialize the simulator.

        Args:
            elevation: Normalized elevation field, shape (height, width).
            config: Hydrology configuration.
            seed: Base seed for per-river random streams.
        """
        self.elevation = elevation
        self.config = config
        self.seed = seed
        self.height, self.width = elevation.shape
        self.flow = np.zeros(elevation.shape, dtype=np.float32)
        self.rivers: list[River] = []
        self.skipped = 0

    def run(self) -> NDArray[np.float32]:
        """Trace every configured river and return the smoothed flow grid."""
        for index in range(self.config.river_count):
            self.trace_river(index)

        logger.debug(
            "rivers_traced",
            traced=len(self.rivers),
            skipped=self.skipped,
            branches=sum(r.branches for r in self.rivers),
        )
        return smooth_flow(self.flow)

    def trace_river(self, index: int) -> River | None:
        """Select a source for river ``index`` and trace it.

        Returns:
            The traced River, or None if no source could be found.
        """
        rng = make_rng(self.seed + self.config.river_seed_offset + index)
        source = select_river_source(
            self.elevation,
            self.config.source_elevation,
            rng,
            self.config.max_source_attempts,
        )
        if source is None:
            self.skipped += 1
            logger.warning(
                "river_source_unreachable",
                river=index,
                threshold=self.config.source_elevation,
                attempts=self.config.max_source_attempts,
            )
            return None

        budget = int(rng.integers(self.config.length_min, self.config.length_max))
        river = River(source=source, budget=budget)
        self._walk(river, rng)
        self.rivers.append(river)
        return river

    def _walk(self, river: River, rng: np.random.Generator) -> None:
        """Walk the main stem and its branches depth-first via a work-list."""
        eps = self.config.epsilon
        sx, sy = river.source
        stack = [
            _Trace(
                x=sx,
                y=sy,
                water_level=float(self.elevation[sy, sx]) + eps,
                budget=river.budget,
                depth=0,
                path=river.path,
            )
        ]
        river.path.append(river.source)

        while stack:
            trace = stack[-1]

            if trace.pending:
                nx, ny = trace.pending.pop()
                child_budget = trace.budget // 2
                if (
                    child_budget > 0
                    and trace.depth < self.config.max_branch_depth
                    and self.elevation[ny, nx] < trace.water_level
                    and self.flow[ny, nx] == 0
                ):
                    river.branches += 1
                    stack.append(
                        _Trace(
                            x=nx,
                            y=ny,
                            water_level=float(self.elevation[ny, nx]) + eps,
                            budget=child_budget,
                            depth=trace.depth + 1,
                        )
                    )
                continue

            if trace.budget <= 0:
                stack.pop()
                continue

            self._step(trace, rng)

    def _step(self, trace: _Trace, rng: np.random.Generator) -> None:
        """Advance one trace by a single move or one pooling increment."""
        x, y = trace.x, trace.y
        self.flow[y, x] += 1.0

        current = float(self.elevation[y, x])
        best: tuple[float, float] | None = None
        best_cell = (x, y)

        for d in rng.permutation(8):
            nx = x + int(D8_DX[d])
            ny = y + int(D8_DY[d])
            if not (0 <= nx < self.width and 0 <= ny < self.height):
                continue
            neighbour = float(self.elevation[ny, nx])
            if neighbour >= trace.water_level:
                continue
            # Lowest first, then steepest drop per unit distance
            key = (neighbour, -(current - neighbour) / D8_DISTANCE[d])
            if best is None or key < best:
                best = key
                best_cell = (nx, ny)

        if best is None:
            # Pool: raise the water level and retry from here
            trace.water_level += self.config.water_level_step
            trace.budget -= 1
            return

        trace.x, trace.y = best_cell
        trace.water_level = max(
            trace.water_level, float(self.elevation[trace.y, trace.x]) + self.config.epsilon
        )
        trace.budget -= 1
        if trace.path is not None:
            trace.path.append(best_cell)

        # Branch candidates are re-checked when popped, after earlier siblings ran
        candidates = []
        for d in rng.permutation(8):
            nx = trace.x + int(D8_DX[d])
            ny = trace.y + int(D8_DY[d])
            if 0 <= nx < self.width and 0 <= ny < self.height:
                candidates.append((nx, ny))
        candidates.reverse()
        trace.pending = candidates
