"""Biome colour palette for renderers.

Rendering itself lives outside this package; a renderer takes the biome
grid and a palette and turns them into pixels.
"""

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field

from .biomes import Biome

RGB = tuple[int, int, int]

DEFAULT_COLORS: dict[Biome, RGB] = {
    Biome.TUNDRA: (211, 211, 211),
    Biome.DESERT: (244, 164, 96),
    Biome.GRASSLAND: (144, 238, 144),
    Biome.CONIFEROUS_FOREST: (107, 142, 35),
    Biome.SAVANNAH: (218, 165, 32),
    Biome.JUNGLE: (0, 100, 0),
    Biome.TEMPERATE_FOREST: (34, 139, 34),
    Biome.SWAMP: (46, 139, 87),
    Biome.ARCTIC: (255, 255, 255),
    Biome.MOUNTAIN: (128, 128, 128),
    Biome.RIVER: (0, 0, 255),
    Biome.LAKE: (0, 0, 139),
}


class BiomePalette(BaseModel):
    """Immutable biome -> RGB mapping."""

    model_config = ConfigDict(frozen=True)

    colors: dict[Biome, RGB] = Field(default_factory=lambda: dict(DEFAULT_COLORS))
    fallback: RGB = Field(default=(0, 0, 0), description="Colour for unmapped biomes")

    def color(self, biome: Biome) -> RGB:
        """Colour for a single biome."""
        return self.colors.get(biome, self.fallback)

    def lookup_table(self) -> NDArray[np.uint8]:
        """256-entry RGB table indexed by biome code."""
        table = np.empty((256, 3), dtype=np.uint8)
        table[:] = self.fallback
        for biome, rgb in self.colors.items():
            table[int(biome)] = rgb
        return table


def colorize(biome_map: NDArray[np.uint8], palette: BiomePalette | None = None) -> NDArray[np.uint8]:
    """Convert a biome grid into an (height, width, 3) RGB array."""
    palette = palette or BiomePalette()
    return palette.lookup_table()[np.asarray(biome_map, dtype=np.uint8)]
