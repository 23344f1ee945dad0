"""Tests for biome classification."""

import numpy as np
import pytest
from pydantic import ValidationError

from worldgen.biomes import SPECIAL_BIOMES, TERRESTRIAL_BIOMES, Biome
from worldgen.classification import BiomeClassifier, bucket
from worldgen.config import BiomeTable, ClassificationConfig


class TestBiome:
    """Tests for the biome catalog."""

    def test_codes_unique(self) -> None:
        """Every biome has a distinct uint8 code."""
        codes = [int(b) for b in Biome]
        assert len(codes) == len(set(codes))
        assert all(0 <= c <= 255 for c in codes)

    def test_special_biomes(self) -> None:
        """Mountain, river and lake are the special categories."""
        assert SPECIAL_BIOMES == {Biome.MOUNTAIN, Biome.RIVER, Biome.LAKE}
        assert TERRESTRIAL_BIOMES.isdisjoint(SPECIAL_BIOMES)
        assert TERRESTRIAL_BIOMES | SPECIAL_BIOMES == set(Biome)

    def test_properties(self) -> None:
        """Water and terrestrial flags."""
        assert Biome.LAKE.water
        assert not Biome.DESERT.water
        assert Biome.DESERT.terrestrial
        assert not Biome.MOUNTAIN.terrestrial


class TestBucket:
    """Tests for climate quantization."""

    @pytest.mark.parametrize(
        "value,expected",
        [(0.0, 0), (0.19, 0), (0.2, 1), (0.99, 4), (1.0, 4), (-0.5, 0), (1.7, 4)],
    )
    def test_clamped_buckets(self, value: float, expected: int) -> None:
        """Values are floored into buckets and clamped to the table."""
        assert bucket(value, 5) == expected

    def test_nan_goes_to_first_bucket(self) -> None:
        """NaN never indexes outside the table."""
        assert bucket(float("nan"), 5) == 0


class TestClassify:
    """Tests for single-cell classification."""

    @pytest.fixture
    def classifier(self) -> BiomeClassifier:
        return BiomeClassifier()

    def test_totality(self, classifier: BiomeClassifier) -> None:
        """Every (temperature, rainfall) bucket maps to a terrestrial biome."""
        n = classifier.size
        for t in range(n):
            for r in range(n):
                biome = classifier.classify((t + 0.5) / n, (r + 0.5) / n, 0.5, False, False)
                assert biome in TERRESTRIAL_BIOMES

    def test_river_beats_lake(self, classifier: BiomeClassifier) -> None:
        """River status takes priority over lake status."""
        assert classifier.classify(0.5, 0.5, 0.1, True, True) == Biome.RIVER

    def test_lake_beats_mountain(self, classifier: BiomeClassifier) -> None:
        """Lakes win over high elevation."""
        assert classifier.classify(0.5, 0.5, 0.95, False, True) == Biome.LAKE

    def test_river_beats_mountain(self, classifier: BiomeClassifier) -> None:
        """Rivers win over high elevation."""
        assert classifier.classify(0.5, 0.5, 0.95, True, False) == Biome.RIVER

    def test_mountain_threshold_strict(self, classifier: BiomeClassifier) -> None:
        """Mountains start strictly above the threshold."""
        assert classifier.classify(0.5, 0.5, 0.95, False, False) == Biome.MOUNTAIN
        assert classifier.classify(0.5, 0.5, 0.9, False, False) != Biome.MOUNTAIN

    def test_climate_extremes(self, classifier: BiomeClassifier) -> None:
        """Default table corners."""
        assert classifier.classify(0.0, 0.0, 0.5, False, False) == Biome.ARCTIC
        assert classifier.classify(1.0, 0.0, 0.5, False, False) == Biome.DESERT
        assert classifier.classify(1.0, 1.0, 0.5, False, False) == Biome.JUNGLE

    def test_custom_table(self) -> None:
        """Alternate tables can be injected through configuration."""
        table = BiomeTable(rows=((Biome.SWAMP, Biome.DESERT), (Biome.TUNDRA, Biome.JUNGLE)))
        classifier = BiomeClassifier(ClassificationConfig(table=table))
        assert classifier.size == 2
        assert classifier.classify(0.1, 0.1, 0.0, False, False) == Biome.SWAMP
        assert classifier.classify(0.1, 0.9, 0.0, False, False) == Biome.DESERT
        assert classifier.classify(0.9, 0.1, 0.0, False, False) == Biome.TUNDRA
        assert classifier.classify(0.9, 0.9, 0.0, False, False) == Biome.JUNGLE


class TestBiomeTable:
    """Tests for table validation."""

    def test_default_is_square(self) -> None:
        """The default table has no gaps."""
        table = BiomeTable()
        assert all(len(row) == table.size for row in table.rows)

    def test_rejects_ragged_table(self) -> None:
        """Non-square tables are invalid."""
        with pytest.raises(ValidationError):
            BiomeTable(rows=((Biome.DESERT, Biome.SWAMP), (Biome.DESERT,)))

    def test_rejects_special_biomes(self) -> None:
        """Special biomes can't come from the climate lookup."""
        with pytest.raises(ValidationError):
            BiomeTable(rows=((Biome.LAKE,),))

    def test_rejects_empty_table(self) -> None:
        """A table needs at least one bucket."""
        with pytest.raises(ValidationError):
            BiomeTable(rows=())

    def test_accepts_names(self) -> None:
        """Biome names are accepted in any case."""
        table = BiomeTable(rows=[["desert", "Swamp"], ["TUNDRA", "jungle"]])
        assert table.rows[0] == (Biome.DESERT, Biome.SWAMP)

    def test_rejects_unknown_name(self) -> None:
        """Unknown biome names fail validation."""
        with pytest.raises(ValidationError):
            BiomeTable(rows=[["volcano"]])

    def test_frozen(self) -> None:
        """Tables are immutable."""
        table = BiomeTable()
        with pytest.raises(ValidationError):
            table.rows = ()


class TestClassifyGrid:
    """Tests for whole-grid classification."""

    @pytest.fixture
    def grids(self) -> dict:
        rng = np.random.default_rng(12)
        shape = (15, 17)
        river = np.zeros(shape, dtype=np.float32)
        river[rng.random(shape) < 0.1] = 1.5
        return {
            "temperature": rng.random(shape).astype(np.float32),
            "rainfall": rng.random(shape).astype(np.float32),
            "elevation": rng.random(shape).astype(np.float32),
            "river": river,
            "lake": rng.random(shape) < 0.15,
        }

    def test_matches_per_cell(self, grids: dict) -> None:
        """Vectorized classification agrees with classify()."""
        classifier = BiomeClassifier()
        result = classifier.classify_grid(**grids)
        height, width = result.shape
        for y in range(height):
            for x in range(width):
                expected = classifier.classify(
                    float(grids["temperature"][y, x]),
                    float(grids["rainfall"][y, x]),
                    float(grids["elevation"][y, x]),
                    bool(grids["river"][y, x] > 0),
                    bool(grids["lake"][y, x]),
                )
                assert result[y, x] == expected

    def test_workers_do_not_change_result(self, grids: dict) -> None:
        """Banded classification gives the same grid."""
        classifier = BiomeClassifier()
        np.testing.assert_array_equal(
            classifier.classify_grid(**grids, workers=1),
            classifier.classify_grid(**grids, workers=4),
        )
