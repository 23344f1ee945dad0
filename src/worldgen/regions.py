"""Region segmentation: flood fill into same-biome components, merge small ones."""

from collections import deque
from dataclasses import dataclass, field

import numpy as np
import structlog
from numpy.typing import NDArray
from scipy.spatial.distance import cdist

from .biomes import Biome
from .parallel import map_ordered

logger = structlog.get_logger()

# 8-connected neighbourhood as (dx, dy)
NEIGHBOURS = (
    (1, 0), (-1, 0), (0, 1), (0, -1),
    (1, 1), (-1, -1), (1, -1), (-1, 1),
)


@dataclass
class Region:
    """A connected set of same-biome cells."""

    biome: Biome
    cells: list[tuple[int, int]] = field(default_factory=list)  # (x, y)
    barrier_cells: list[tuple[int, int]] = field(default_factory=list)
    contains_river: bool = False

    @property
    def area(self) -> int:
        """Number of cells in the region."""
        return len(self.cells)

    @property
    def origin(self) -> tuple[int, int]:
        """First cell discovered by the flood fill."""
        return self.cells[0]

    def add_cell(self, x: int, y: int, is_barrier: bool) -> None:
        """Append a cell, also recording it as a barrier cell if flagged."""
        self.cells.append((x, y))
        if is_barrier:
            self.barrier_cells.append((x, y))

    def absorb(self, other: "Region") -> None:
        """Take over all cells and barrier cells of ``other``."""
        self.cells.extend(other.cells)
        self.barrier_cells.extend(other.barrier_cells)
        self.contains_river = self.contains_river or other.contains_river

    def freeze(self) -> "WorldRegion":
        """Immutable snapshot of this region."""
        return WorldRegion(
            biome=self.biome,
            cells=tuple(self.cells),
            barrier_cells=tuple(self.barrier_cells),
            contains_river=self.contains_river,
        )


@dataclass(frozen=True)
class WorldRegion:
    """A final, read-only region of a generated world."""

    biome: Biome
    cells: tuple[tuple[int, int], ...]  # (x, y)
    barrier_cells: tuple[tuple[int, int], ...]
    contains_river: bool

    @property
    def area(self) -> int:
        return len(self.cells)

    @property
    def origin(self) -> tuple[int, int]:
        return self.cells[0]


def barrier_mask(biome_map: NDArray[np.uint8]) -> NDArray[np.bool_]:
    """Flag cells with an 8-neighbour off the grid or of a different biome.

    Args:
        biome_map: Grid of biome codes.

    Returns:
        Boolean mask of barrier cells.
    """
    height, width = biome_map.shape
    # Pad with a code no biome uses so edge cells always see a difference
    padded = np.full((height + 2, width + 2), -1, dtype=np.int16)
    padded[1:-1, 1:-1] = biome_map
    center = padded[1:-1, 1:-1]

    mask = np.zeros((height, width), dtype=bool)
    for dx, dy in NEIGHBOURS:
        shifted = padded[1 + dy:1 + dy + height, 1 + dx:1 + dx + width]
        mask |= shifted != center
    return mask


def _fill_biome(
    biome_map: NDArray[np.uint8],
    barrier: NDArray[np.bool_],
    river: NDArray[np.bool_],
    code: int,
) -> list[Region]:
    """Flood fill every component of one biome, in row-major start order."""
    height, width = biome_map.shape
    # Cells of other biomes count as already visited
    visited = biome_map != code
    biome = Biome(code)
    regions: list[Region] = []

    for start_y, start_x in np.argwhere(~visited):
        if visited[start_y, start_x]:
            continue

        region = Region(biome=biome)
        queue: deque[tuple[int, int]] = deque([(int(start_x), int(start_y))])
        visited[start_y, start_x] = True

        while queue:
            x, y = queue.popleft()
            region.add_cell(x, y, bool(barrier[y, x]))
            if river[y, x]:
                region.contains_river = True

            for dx, dy in NEIGHBOURS:
                nx, ny = x + dx, y + dy
                if 0 <= nx < width and 0 <= ny < height and not visited[ny, nx]:
                    visited[ny, nx] = True
                    queue.append((nx, ny))

        regions.append(region)

    return regions


def find_regions(
    biome_map: NDArray[np.uint8],
    river_map: NDArray[np.float32] | None = None,
    workers: int = 1,
) -> list[Region]:
    """Partition the biome grid into maximal 8-connected same-biome regions.

    Each biome is filled independently (in parallel when ``workers > 1``)
    into its own list. The lists are then combined and ordered by each
    region's first cell in row-major order, which is the order a single
    row-major scan would discover them in.

    Args:
        biome_map: Grid of biome codes.
        river_map: Optional flow grid; positive cells mark regions as river.
        workers: Thread count for per-biome fills.

    Returns:
        Regions in discovery order.
    """
    biome_map = np.asarray(biome_map)
    if biome_map.size == 0:
        return []

    barrier = barrier_mask(biome_map)
    if river_map is None:
        river = np.zeros(biome_map.shape, dtype=bool)
    else:
        river = np.asarray(river_map) > 0

    codes = [int(c) for c in np.unique(biome_map)]
    per_biome = map_ordered(
        lambda code: _fill_biome(biome_map, barrier, river, code),
        codes,
        workers,
    )

    regions = [region for found in per_biome for region in found]
    regions.sort(key=lambda r: (r.origin[1], r.origin[0]))
    return regions


def _barrier_distance(a: Region, b: Region) -> float:
    """Minimum Euclidean distance between the barrier cells of two regions."""
    if not a.barrier_cells or not b.barrier_cells:
        return float("inf")
    return float(cdist(np.asarray(a.barrier_cells), np.asarray(b.barrier_cells)).min())


def merge_small_regions(regions: list[Region], min_area: int) -> list[Region]:
    """Merge regions smaller than ``min_area`` into their nearest same-biome region.

    Regions containing river cells are never merged away. Candidates are
    handled in creation order; a candidate only merges into a settled
    region (one that is not itself waiting to be merged), choosing the
    closest by barrier-cell distance with ties going to the earliest
    region. A target that is still too small afterwards is checked again
    straight away. Candidates without any same-biome target are kept.

    Args:
        regions: Regions in creation order; merged regions are mutated.
        min_area: Minimum region size.

    Returns:
        Surviving regions in creation order.
    """

    def is_candidate(region: Region) -> bool:
        return region.area < min_area and not region.contains_river

    alive = [True] * len(regions)
    settled = [not is_candidate(r) for r in regions]
    work = deque(i for i, done in enumerate(settled) if not done)
    merged = 0
    standalone: set[int] = set()

    while work:
        index = work.popleft()
        if not alive[index]:
            continue
        region = regions[index]

        target_index = None
        best = float("inf")
        for j, other in enumerate(regions):
            if j == index or not alive[j] or not settled[j] or other.biome != region.biome:
                continue
            distance = _barrier_distance(region, other)
            if distance < best:
                best = distance
                target_index = j

        if target_index is None:
            settled[index] = True
            standalone.add(index)
            continue

        target = regions[target_index]
        target.absorb(region)
        alive[index] = False
        merged += 1

        if is_candidate(target):
            settled[target_index] = False
            work.appendleft(target_index)

    survivors = [r for i, r in enumerate(regions) if alive[i]]
    kept = sum(1 for i in standalone if alive[i] and regions[i].area < min_area)
    logger.debug(
        "regions_merged",
        merged=merged,
        kept_standalone=kept,
        remaining=len(survivors),
    )
    return survivors


def segment_regions(
    biome_map: NDArray[np.uint8],
    river_map: NDArray[np.float32] | None,
    min_area: int,
    workers: int = 1,
) -> list[Region]:
    """Flood fill the biome grid and merge undersized regions."""
    regions = find_regions(biome_map, river_map, workers=workers)
    logger.debug("regions_found", count=len(regions))
    return merge_small_regions(regions, min_area)
