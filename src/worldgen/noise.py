"""Seeded gradient noise for scalar field generation.

Provides an improved-Perlin sampler with fractal (fBm) octave summation,
vectorized over numpy arrays so whole grids can be sampled at once.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .config import FieldNoiseConfig
from .parallel import run_in_bands

SEED_MASK = 0xFFFF_FFFF_FFFF_FFFF


def make_rng(seed: int) -> np.random.Generator:
    """Seeded generator; negative seeds wrap into the unsigned 64-bit range."""
    return np.random.default_rng(int(seed) & SEED_MASK)


def fade(t: NDArray[np.float64]) -> NDArray[np.float64]:
    """Quintic fade curve 6t^5 - 15t^4 + 10t^3."""
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


def _lerp(t: NDArray[np.float64], a: NDArray[np.float64], b: NDArray[np.float64]) -> NDArray[np.float64]:
    return a + t * (b - a)


def _grad(hash_: NDArray[np.int64], x: NDArray[np.float64], y: NDArray[np.float64]) -> NDArray[np.float64]:
    """Dot product with one of four pseudo-gradients chosen by the low hash bits."""
    h = hash_ & 3
    u = np.where(h < 2, x, y)
    v = np.where(h < 2, y, x)
    return np.where((h & 1) == 0, u, -u) + np.where((h & 2) == 0, v, -v)


class NoiseField:
    """Deterministic 2D gradient noise built from a seed.

    The permutation table is a seeded shuffle of 0..255 repeated twice so
    corner hashing never needs a modulo.
    """

    def __init__(self, seed: int, repeat: int = -1):
        """Initialize the noise field.

        Args:
            seed: Seed for the permutation shuffle.
            repeat: Tile period in noise units; values <= 0 disable wrapping.
        """
        self.seed = seed
        self.repeat = repeat
        rng = make_rng(seed)
        perm = rng.permutation(256).astype(np.int64)
        self._perm = np.concatenate([perm, perm])
        self._perm.setflags(write=False)

    @property
    def permutation(self) -> NDArray[np.int64]:
        """The 512-entry permutation table (read-only)."""
        return self._perm

    def single(self, x: ArrayLike, y: ArrayLike) -> NDArray[np.float64]:
        """Sample one octave of gradient noise.

        Args:
            x: X coordinates (scalar or array).
            y: Y coordinates, broadcastable against x.

        Returns:
            Noise values in [0, 1].
        """
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        if self.repeat > 0:
            x = np.mod(x, self.repeat)
            y = np.mod(y, self.repeat)

        x_floor = np.floor(x)
        y_floor = np.floor(y)
        xi = x_floor.astype(np.int64) & 255
        yi = y_floor.astype(np.int64) & 255
        xf = x - x_floor
        yf = y - y_floor

        if self.repeat > 0:
            xi1 = ((x_floor.astype(np.int64) + 1) % self.repeat) & 255
            yi1 = ((y_floor.astype(np.int64) + 1) % self.repeat) & 255
        else:
            xi1 = xi + 1
            yi1 = yi + 1

        u = fade(xf)
        v = fade(yf)

        p = self._perm
        aa = p[p[xi] + yi]
        ab = p[p[xi] + yi1]
        ba = p[p[xi1] + yi]
        bb = p[p[xi1] + yi1]

        bottom = _lerp(u, _grad(p[aa], xf, yf), _grad(p[ba], xf - 1.0, yf))
        top = _lerp(u, _grad(p[ab], xf, yf - 1.0), _grad(p[bb], xf - 1.0, yf - 1.0))
        result = _lerp(v, bottom, top)

        return (result + 1.0) / 2.0

    def noise(
        self,
        x: ArrayLike,
        y: ArrayLike,
        octaves: int = 8,
        persistence: float = 0.5,
        lacunarity: float = 2.0,
        amplitude_scale: float = 1.0,
        frequency_scale: float = 1.0,
    ) -> NDArray[np.float64] | float:
        """Sample fractal noise by summing octaves of gradient noise.

        Args:
            x: X coordinates (scalar or array).
            y: Y coordinates, broadcastable against x.
            octaves: Number of noise layers to sum.
            persistence: Amplitude multiplier between octaves.
            lacunarity: Frequency multiplier between octaves.
            amplitude_scale: Amplitude of the first octave.
            frequency_scale: Frequency of the first octave.

        Returns:
            Noise in [0, 1]; a float for scalar input, else an array.
        """
        if octaves < 1:
            raise ValueError(f"octaves must be >= 1, got {octaves}")

        scalar = np.ndim(x) == 0 and np.ndim(y) == 0
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)

        total = np.zeros(np.broadcast(x, y).shape, dtype=np.float64)
        frequency = frequency_scale
        amplitude = amplitude_scale
        max_value = 0.0

        for _ in range(octaves):
            total += self.single(x * frequency, y * frequency) * amplitude
            max_value += amplitude
            amplitude *= persistence
            frequency *= lacunarity

        if max_value <= 0.0:
            raise ValueError(
                f"Octave amplitudes must sum to a positive value, got {max_value}"
            )

        # Normalize by accumulated amplitude so octave count doesn't shift the range
        result = np.clip(total / max_value, 0.0, 1.0)
        if scalar:
            return float(result)
        return result

    def sample_grid(
        self,
        width: int,
        height: int,
        config: FieldNoiseConfig,
        workers: int = 1,
    ) -> NDArray[np.float32]:
        """Sample a (height, width) field of fractal noise.

        Cell (x, y) samples at ``(x / width - center) * scale + offset``
        (likewise for y). Rows are split into bands across ``workers``
        threads; each band writes only its own rows.

        Args:
            width: Grid width.
            height: Grid height.
            config: Field noise parameters.
            workers: Thread count for banded sampling.

        Returns:
            2D float32 array of noise values in [0, 1].
        """
        out = np.empty((height, width), dtype=np.float32)
        xs = (np.arange(width, dtype=np.float64) / width - config.center) * config.scale
        xs += config.offset

        def sample_band(start: int, stop: int) -> None:
            ys = (np.arange(start, stop, dtype=np.float64) / height - config.center)
            ys = ys * config.scale + config.offset
            grid_x, grid_y = np.meshgrid(xs, ys)
            out[start:stop, :] = self.noise(
                grid_x,
                grid_y,
                octaves=config.octaves,
                persistence=config.persistence,
                lacunarity=config.lacunarity,
                amplitude_scale=config.amplitude_scale,
                frequency_scale=config.frequency_scale,
            )

        run_in_bands(height, workers, sample_band)
        return out
