"""Main world generation orchestration."""

import time

import numpy as np
import structlog
from numpy.typing import NDArray

from .biomes import Biome
from .classification import BiomeClassifier
from .config import FieldNoiseConfig, GenerationConfig
from .exceptions import InvalidInputError
from .grids import log_boolean_stats, log_grid_stats, normalize, smooth
from .hydrology import HydrologySimulator, River, mark_lakes
from .noise import NoiseField
from .regions import WorldRegion, segment_regions

logger = structlog.get_logger()


def _validate_dimension(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidInputError(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise InvalidInputError(f"{name} must be positive, got {value}")
    return int(value)


def _read_only(array: NDArray) -> NDArray:
    array.setflags(write=False)
    return array


class WorldGenerator:
    """Generates a complete world map at construction.

    The pipeline runs once, in order: elevation, climate, lakes, rivers,
    biomes, regions. Afterwards every grid is a read-only numpy array of
    shape (height, width), indexed ``[y, x]``, and regions are frozen
    ``WorldRegion`` snapshots.
    """

    def __init__(
        self,
        width: int,
        height: int,
        seed: int,
        config: GenerationConfig | None = None,
    ):
        """Generate the world.

        Args:
            width: World width in cells (positive).
            height: World height in cells (positive).
            seed: Seed for every random and noise stream.
            config: Generation parameters; defaults when omitted.

        Raises:
            InvalidInputError: If width or height is not a positive integer.
        """
        self._width = _validate_dimension("width", width)
        self._height = _validate_dimension("height", height)
        self._seed = int(seed)
        self._config = config or GenerationConfig()

        log = logger.bind(width=self._width, height=self._height, seed=self._seed)
        log.info("world_generation_started", workers=self._config.workers)
        started = time.perf_counter()

        self._noise = NoiseField(self._seed, repeat=self._config.noise.repeat)

        phase = time.perf_counter()
        self._elevation = self._generate_field(
            "elevation",
            self._config.noise.elevation,
            self._config.erosion.elevation_iterations,
        )
        self._log_phase("elevation", phase)

        phase = time.perf_counter()
        self._temperature = self._generate_field(
            "temperature",
            self._config.noise.temperature,
            self._config.erosion.temperature_iterations,
        )
        self._rainfall = self._generate_field(
            "rainfall",
            self._config.noise.rainfall,
            self._config.erosion.rainfall_iterations,
        )
        self._log_phase("climate", phase)

        phase = time.perf_counter()
        hydrology = self._config.hydrology
        self._lakes = mark_lakes(self._elevation, hydrology.lake_elevation)
        simulator = HydrologySimulator(self._elevation, hydrology, self._seed)
        self._flow = simulator.run()
        self._rivers = tuple(simulator.rivers)
        self._log_phase("hydrology", phase)

        phase = time.perf_counter()
        classifier = BiomeClassifier(self._config.classification)
        self._biomes = classifier.classify_grid(
            self._temperature,
            self._rainfall,
            self._elevation,
            self._flow,
            self._lakes,
            workers=self._config.workers,
        )
        self._log_phase("biomes", phase)

        phase = time.perf_counter()
        regions = segment_regions(
            self._biomes,
            self._flow,
            self._config.regions.min_area,
            workers=self._config.workers,
        )
        self._regions = tuple(region.freeze() for region in regions)
        self._log_phase("regions", phase)

        for array in (
            self._elevation,
            self._temperature,
            self._rainfall,
            self._flow,
            self._lakes,
            self._biomes,
        ):
            _read_only(array)

        log.info(
            "world_generation_complete",
            elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
            rivers=len(self._rivers),
            regions=len(self._regions),
        )
        self._log_statistics()

    def _generate_field(
        self, name: str, noise_config: FieldNoiseConfig, iterations: int
    ) -> NDArray[np.float32]:
        raw = self._noise.sample_grid(
            self._width, self._height, noise_config, workers=self._config.workers
        )
        eroded = smooth(raw, iterations)
        return normalize(eroded, name=name)

    def _log_phase(self, name: str, started: float) -> None:
        logger.debug(
            "phase_complete",
            phase=name,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
        )

    def _log_statistics(self) -> None:
        log_grid_stats(self._elevation, "elevation")
        log_grid_stats(self._temperature, "temperature")
        log_grid_stats(self._rainfall, "rainfall")
        log_grid_stats(self._flow, "rivers")
        log_boolean_stats(self._lakes, "lakes")

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def config(self) -> GenerationConfig:
        return self._config

    @property
    def elevation_map(self) -> NDArray[np.float32]:
        """Normalized elevation in [0, 1]."""
        return self._elevation

    @property
    def temperature_map(self) -> NDArray[np.float32]:
        """Normalized temperature in [0, 1]."""
        return self._temperature

    @property
    def rainfall_map(self) -> NDArray[np.float32]:
        """Normalized rainfall in [0, 1]."""
        return self._rainfall

    @property
    def river_map(self) -> NDArray[np.float32]:
        """Smoothed accumulated river flow (0 = no river)."""
        return self._flow

    @property
    def lake_map(self) -> NDArray[np.bool_]:
        return self._lakes

    @property
    def biome_map(self) -> NDArray[np.uint8]:
        """Biome codes; convert with ``Biome(code)``."""
        return self._biomes

    @property
    def regions(self) -> tuple[WorldRegion, ...]:
        """Final read-only regions after merging, in creation order."""
        return self._regions

    @property
    def rivers(self) -> tuple[River, ...]:
        """Traced rivers (skipped sources are absent)."""
        return self._rivers

    def biome_at(self, x: int, y: int) -> Biome:
        """Biome of cell (x, y)."""
        if not (0 <= x < self._width and 0 <= y < self._height):
            raise IndexError(f"Cell ({x}, {y}) outside {self._width}x{self._height} world")
        return Biome(int(self._biomes[y, x]))
