"""Shared test fixtures for world generation tests."""

import numpy as np
import pytest

from worldgen.config import GenerationConfig, RegionConfig
from worldgen.generator import WorldGenerator


@pytest.fixture
def small_config() -> GenerationConfig:
    """Default generation config with a small minimum region area."""
    return GenerationConfig(regions=RegionConfig(min_area=5))


@pytest.fixture(scope="session")
def world_20() -> WorldGenerator:
    """20x20 world, seed 42, min area 5."""
    config = GenerationConfig(regions=RegionConfig(min_area=5))
    return WorldGenerator(20, 20, 42, config)


@pytest.fixture
def slope_elevation() -> np.ndarray:
    """10x10 elevation rising linearly from 0 at x=0 to 1 at x=9."""
    row = np.linspace(0.0, 1.0, 10, dtype=np.float32)
    return np.tile(row, (10, 1))
