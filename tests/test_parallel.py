"""Tests for row-band fan-out."""

import threading

import numpy as np
import pytest

from worldgen.parallel import map_ordered, row_bands, run_in_bands


class TestRowBands:
    """Tests for band splitting."""

    @pytest.mark.parametrize("height,workers", [(10, 1), (10, 3), (7, 7), (3, 8), (1, 4)])
    def test_covers_every_row_once(self, height: int, workers: int) -> None:
        """Bands are contiguous and cover all rows."""
        bands = row_bands(height, workers)
        rows = [y for start, stop in bands for y in range(start, stop)]
        assert rows == list(range(height))
        assert len(bands) <= workers

    def test_balanced(self) -> None:
        """Band sizes differ by at most one row."""
        sizes = [stop - start for start, stop in row_bands(11, 4)]
        assert max(sizes) - min(sizes) <= 1


class TestRunInBands:
    """Tests for banded execution."""

    def test_fills_output(self) -> None:
        """Each band writes its own rows."""
        out = np.zeros((9, 4))

        def fill(start: int, stop: int) -> None:
            out[start:stop] = np.arange(start, stop)[:, None]

        run_in_bands(9, 3, fill)
        np.testing.assert_array_equal(out[:, 0], np.arange(9))

    def test_propagates_errors(self) -> None:
        """Worker exceptions reach the caller."""

        def fail(start: int, stop: int) -> None:
            if start > 0:
                raise RuntimeError("band failed")

        with pytest.raises(RuntimeError, match="band failed"):
            run_in_bands(8, 4, fail)


class TestMapOrdered:
    """Tests for ordered mapping."""

    def test_keeps_input_order(self) -> None:
        """Results come back in input order regardless of threads."""
        assert map_ordered(lambda v: v * v, range(20), workers=5) == [v * v for v in range(20)]

    def test_serial_runs_inline(self) -> None:
        """One worker runs on the calling thread."""
        caller = threading.get_ident()
        assert map_ordered(lambda _: threading.get_ident(), [1, 2], workers=1) == [caller, caller]
