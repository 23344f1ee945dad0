"""World generation configuration models."""

import tomllib
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .biomes import Biome, SPECIAL_BIOMES

# Rows are temperature buckets (cold -> hot), columns rainfall buckets (dry -> wet).
DEFAULT_BIOME_ROWS: tuple[tuple[Biome, ...], ...] = (
    (Biome.ARCTIC, Biome.ARCTIC, Biome.TUNDRA, Biome.TUNDRA, Biome.TUNDRA),
    (Biome.TUNDRA, Biome.TUNDRA, Biome.CONIFEROUS_FOREST, Biome.CONIFEROUS_FOREST, Biome.SWAMP),
    (Biome.GRASSLAND, Biome.GRASSLAND, Biome.TEMPERATE_FOREST, Biome.TEMPERATE_FOREST, Biome.SWAMP),
    (Biome.DESERT, Biome.SAVANNAH, Biome.GRASSLAND, Biome.TEMPERATE_FOREST, Biome.JUNGLE),
    (Biome.DESERT, Biome.DESERT, Biome.SAVANNAH, Biome.JUNGLE, Biome.JUNGLE),
)


def _coerce_biome(value: object) -> object:
    """Accept biome names (any case) as well as numeric codes."""
    if isinstance(value, str):
        try:
            return Biome[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown biome name: {value!r}") from None
    return value


class FieldNoiseConfig(BaseModel):
    """Noise parameters and coordinate mapping for one scalar field."""

    scale: float = Field(default=5.0, description="Noise units spanned by the map")
    center: float = Field(
        default=0.0, description="Subtracted from normalized cell coordinates"
    )
    offset: float = Field(default=0.0, description="Added after scaling")
    octaves: int = Field(default=8, ge=1, description="Number of octaves for fBm")
    persistence: float = Field(
        default=0.5, gt=0.0, description="Amplitude multiplier per octave"
    )
    lacunarity: float = Field(default=2.0, description="Frequency multiplier per octave")
    amplitude_scale: float = Field(
        default=1.0, gt=0.0, description="Amplitude of the first octave"
    )
    frequency_scale: float = Field(default=1.0, description="Frequency of the first octave")


class NoiseConfig(BaseModel):
    """Noise fields sampled at construction."""

    repeat: int = Field(default=-1, description="Tile period (<= 0 disables wrapping)")
    elevation: FieldNoiseConfig = Field(
        default_factory=lambda: FieldNoiseConfig(
            center=0.5, persistence=0.5, amplitude_scale=3.0, frequency_scale=1.1
        )
    )
    temperature: FieldNoiseConfig = Field(
        default_factory=lambda: FieldNoiseConfig(
            offset=100.0, persistence=0.8, amplitude_scale=3.0, frequency_scale=0.3
        )
    )
    rainfall: FieldNoiseConfig = Field(
        default_factory=lambda: FieldNoiseConfig(
            offset=50.0, persistence=0.4, amplitude_scale=3.0, frequency_scale=0.6
        )
    )


class ErosionConfig(BaseModel):
    """Box-blur smoothing applied to raw fields before normalization."""

    elevation_iterations: int = Field(default=7, ge=0, description="Elevation passes")
    temperature_iterations: int = Field(default=7, ge=0, description="Temperature passes")
    rainfall_iterations: int = Field(default=7, ge=0, description="Rainfall passes")


class HydrologyConfig(BaseModel):
    """River and lake parameters."""

    river_count: int = Field(default=10, ge=0, description="Number of rivers to trace")
    source_elevation: float = Field(
        default=0.7, description="Sources must be strictly above this elevation"
    )
    max_source_attempts: int = Field(
        default=10_000, ge=1, description="Random draws allowed per river source"
    )
    length_min: int = Field(default=500, ge=0, description="Minimum path budget")
    length_max: int = Field(default=800, ge=1, description="Maximum path budget (exclusive)")
    epsilon: float = Field(default=0.01, description="Water level margin above a cell")
    water_level_step: float = Field(
        default=0.01, gt=0.0, description="Water level rise when pooling"
    )
    max_branch_depth: int = Field(default=32, ge=0, description="Branch nesting cap")
    lake_elevation: float = Field(default=0.3, description="Lakes lie below this elevation")
    river_seed_offset: int = Field(default=7000, description="Seed offset for river streams")

    @model_validator(mode="after")
    def _check_length_range(self) -> "HydrologyConfig":
        if self.length_max <= self.length_min:
            raise ValueError("length_max must be greater than length_min")
        return self


class BiomeTable(BaseModel):
    """Square climate lookup table indexed by [temperature bucket][rainfall bucket]."""

    model_config = ConfigDict(frozen=True)

    rows: tuple[tuple[Biome, ...], ...] = Field(default=DEFAULT_BIOME_ROWS)

    @field_validator("rows", mode="before")
    @classmethod
    def _coerce_names(cls, value: object) -> object:
        if isinstance(value, (list, tuple)):
            return tuple(
                tuple(_coerce_biome(v) for v in row) if isinstance(row, (list, tuple)) else row
                for row in value
            )
        return value

    @model_validator(mode="after")
    def _check_shape(self) -> "BiomeTable":
        size = len(self.rows)
        if size == 0:
            raise ValueError("Biome table must have at least one row")
        for i, row in enumerate(self.rows):
            if len(row) != size:
                raise ValueError(
                    f"Biome table must be square: row {i} has {len(row)} entries, expected {size}"
                )
            special = [b.name for b in row if b in SPECIAL_BIOMES]
            if special:
                raise ValueError(f"Biome table row {i} contains special biomes: {special}")
        return self

    @property
    def size(self) -> int:
        """Number of buckets per axis."""
        return len(self.rows)


class ClassificationConfig(BaseModel):
    """Biome classification thresholds."""

    mountain_elevation: float = Field(
        default=0.9, description="Elevation above which land becomes mountain"
    )
    table: BiomeTable = Field(default_factory=BiomeTable)


class RegionConfig(BaseModel):
    """Region segmentation parameters."""

    min_area: int = Field(default=700, ge=0, description="Regions below this size are merged")


class GenerationConfig(BaseModel):
    """Complete world generation configuration."""

    noise: NoiseConfig = Field(default_factory=NoiseConfig)
    erosion: ErosionConfig = Field(default_factory=ErosionConfig)
    hydrology: HydrologyConfig = Field(default_factory=HydrologyConfig)
    classification: ClassificationConfig = Field(default_factory=ClassificationConfig)
    regions: RegionConfig = Field(default_factory=RegionConfig)

    workers: int = Field(default=1, ge=1, description="Threads for banded grid work")


def load_config(config_path: Path) -> GenerationConfig:
    """Load generation configuration from a TOML file.

    Missing tables and keys fall back to their defaults.

    Args:
        config_path: Path to the TOML config file.

    Returns:
        Parsed GenerationConfig.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If TOML is malformed.
        pydantic.ValidationError: If values are out of range.
    """
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return GenerationConfig.model_validate(data)
