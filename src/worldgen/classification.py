"""Biome classification from climate, elevation and water."""

import math

import numpy as np
from numpy.typing import NDArray

from .biomes import Biome
from .config import BiomeTable, ClassificationConfig
from .parallel import run_in_bands


def bucket(value: float, size: int) -> int:
    """Quantize a [0, 1] value into one of ``size`` buckets."""
    if math.isnan(value):
        return 0
    value = min(max(value, 0.0), 1.0)
    return min(math.floor(value * size), size - 1)


class BiomeClassifier:
    """Maps (temperature, rainfall, elevation, river, lake) to a Biome.

    Priority, first match wins: river, lake, mountain elevation, then the
    climate table. The table is supplied by configuration, so alternate
    catalogs can be swapped in without touching module state.
    """

    def __init__(self, config: ClassificationConfig | None = None):
        self.config = config or ClassificationConfig()
        self.table: BiomeTable = self.config.table
        self.mountain_elevation = self.config.mountain_elevation
        self._lookup = np.array(
            [[int(b) for b in row] for row in self.table.rows], dtype=np.uint8
        )
        self._lookup.setflags(write=False)

    @property
    def size(self) -> int:
        """Buckets per climate axis."""
        return self.table.size

    def climate(self, temperature: float, rainfall: float) -> Biome:
        """Look up the terrestrial biome for a climate."""
        n = self.size
        return Biome(int(self._lookup[bucket(temperature, n), bucket(rainfall, n)]))

    def classify(
        self,
        temperature: float,
        rainfall: float,
        elevation: float,
        is_river: bool,
        is_lake: bool,
    ) -> Biome:
        """Classify a single cell.

        Args:
            temperature: Normalized temperature.
            rainfall: Normalized rainfall.
            elevation: Normalized elevation.
            is_river: Whether the cell carries river flow.
            is_lake: Whether the cell is a lake.

        Returns:
            The cell's Biome.
        """
        if is_river:
            return Biome.RIVER
        if is_lake:
            return Biome.LAKE
        if elevation > self.mountain_elevation:
            return Biome.MOUNTAIN
        return self.climate(temperature, rainfall)

    def classify_grid(
        self,
        temperature: NDArray[np.float32],
        rainfall: NDArray[np.float32],
        elevation: NDArray[np.float32],
        river: NDArray[np.float32],
        lake: NDArray[np.bool_],
        workers: int = 1,
    ) -> NDArray[np.uint8]:
        """Classify every cell of a world.

        Gives the same result as calling ``classify`` per cell with
        ``is_river = river > 0``.

        Args:
            temperature: Temperature grid.
            rainfall: Rainfall grid.
            elevation: Elevation grid.
            river: Flow grid (positive = river).
            lake: Lake mask.
            workers: Thread count for banded classification.

        Returns:
            uint8 grid of Biome codes.
        """
        height, width = elevation.shape
        out = np.empty((height, width), dtype=np.uint8)
        n = self.size

        def classify_band(start: int, stop: int) -> None:
            rows = slice(start, stop)
            t_idx = _buckets(temperature[rows], n)
            r_idx = _buckets(rainfall[rows], n)
            band = self._lookup[t_idx, r_idx]
            band = np.where(elevation[rows] > self.mountain_elevation, int(Biome.MOUNTAIN), band)
            band = np.where(lake[rows], int(Biome.LAKE), band)
            band = np.where(river[rows] > 0, int(Biome.RIVER), band)
            out[rows, :] = band

        run_in_bands(height, workers, classify_band)
        return out


def _buckets(values: NDArray[np.floating], size: int) -> NDArray[np.intp]:
    clamped = np.clip(np.nan_to_num(np.asarray(values, dtype=np.float64), nan=0.0), 0.0, 1.0)
    scaled = np.floor(clamped * size)
    return np.clip(scaled, 0, size - 1).astype(np.intp)
