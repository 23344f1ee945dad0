"""Procedural biome world generation.

This package generates elevation, climate, hydrology (rivers and lakes),
a per-cell biome classification and a segmentation into same-biome regions.
"""

from .biomes import SPECIAL_BIOMES, TERRESTRIAL_BIOMES, Biome
from .classification import BiomeClassifier
from .config import (
    BiomeTable,
    ClassificationConfig,
    ErosionConfig,
    FieldNoiseConfig,
    GenerationConfig,
    HydrologyConfig,
    NoiseConfig,
    RegionConfig,
    load_config,
)
from .exceptions import InvalidInputError, WorldGenError
from .generator import WorldGenerator
from .grids import GridStats, boolean_counts, normalize, smooth, statistics
from .hydrology import HydrologySimulator, River, mark_lakes, smooth_flow
from .noise import NoiseField
from .palette import BiomePalette, colorize
from .regions import (
    Region,
    WorldRegion,
    find_regions,
    merge_small_regions,
    segment_regions,
)

__all__ = [
    # Biomes
    "Biome",
    "SPECIAL_BIOMES",
    "TERRESTRIAL_BIOMES",
    "BiomeClassifier",
    # Config
    "BiomeTable",
    "ClassificationConfig",
    "ErosionConfig",
    "FieldNoiseConfig",
    "GenerationConfig",
    "HydrologyConfig",
    "NoiseConfig",
    "RegionConfig",
    "load_config",
    # Generation
    "WorldGenerator",
    "NoiseField",
    "HydrologySimulator",
    "River",
    "mark_lakes",
    "smooth_flow",
    # Grids
    "GridStats",
    "boolean_counts",
    "normalize",
    "smooth",
    "statistics",
    # Regions
    "Region",
    "WorldRegion",
    "find_regions",
    "merge_small_regions",
    "segment_regions",
    # Palette
    "BiomePalette",
    "colorize",
    # Exceptions
    "WorldGenError",
    "InvalidInputError",
]
