"""Biome categories and their properties."""

from enum import IntEnum


class Biome(IntEnum):
    """Biome categories stored as uint8 codes in the biome grid."""

    TUNDRA = 0
    DESERT = 1
    GRASSLAND = 2
    CONIFEROUS_FOREST = 3
    SAVANNAH = 4
    JUNGLE = 5
    TEMPERATE_FOREST = 6
    SWAMP = 7
    ARCTIC = 8
    # Special biomes
    MOUNTAIN = 9
    RIVER = 10
    LAKE = 11

    @property
    def terrestrial(self) -> bool:
        """Whether this biome comes from the climate lookup."""
        return self not in SPECIAL_BIOMES

    @property
    def water(self) -> bool:
        """Whether this biome is open water."""
        return self in _WATER_BIOMES


SPECIAL_BIOMES = frozenset({
    Biome.MOUNTAIN,
    Biome.RIVER,
    Biome.LAKE,
})

TERRESTRIAL_BIOMES = frozenset(b for b in Biome if b not in SPECIAL_BIOMES)

_WATER_BIOMES = frozenset({
    Biome.RIVER,
    Biome.LAKE,
})
