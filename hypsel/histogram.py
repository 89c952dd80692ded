"""Weighted histograms with fixed bin edges and under/overflow bins.

Bins are numbered from 1 to ``nbins``; bin 0 holds underflow and bin
``nbins + 1`` holds overflow.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def _check_edges(edges: Sequence[float]) -> np.ndarray:
    arr = np.asarray(edges, dtype=float)
    if arr.ndim != 1 or arr.size < 2:
        raise ValueError("Require at least 2 bin boundaries")
    if np.any(np.diff(arr) <= 0):
        raise ValueError("Bin boundaries must be strictly increasing")
    return arr


def _find_bin(edges: np.ndarray, x: float) -> int:
    return int(np.searchsorted(edges, x, side="right"))


class Histogram1D:
    """A one-dimensional weighted histogram."""

    def __init__(self, edges: Sequence[float], title: str = "") -> None:
        self.edges = _check_edges(edges)
        self.title = title
        self.values = np.zeros(self.nbins + 2)
        self.sumw2 = np.zeros(self.nbins + 2)

    @classmethod
    def uniform(cls, n: int, low: float, high: float, title: str = "") -> "Histogram1D":
        """Build a histogram of ``n`` equal-width bins between ``low`` and ``high``."""
        if n < 1:
            raise ValueError("Number of bins must be positive")
        if not high > low:
            raise ValueError("Upper edge must exceed lower edge")
        width = (high - low) / n
        return cls([low + width * i for i in range(n + 1)], title)

    @property
    def nbins(self) -> int:
        return self.edges.size - 1

    @property
    def errors(self) -> np.ndarray:
        """Per-bin uncertainties, including the flow bins."""
        return np.sqrt(self.sumw2)

    @property
    def bin_values(self) -> np.ndarray:
        """Contents of the in-range bins."""
        return self.values[1:-1]

    def _check_bin(self, i: int) -> None:
        if not 1 <= i <= self.nbins:
            raise IndexError(f"Bin {i} outside 1..{self.nbins}")

    def find_bin(self, x: float) -> int:
        """Return the bin holding ``x``."""
        return _find_bin(self.edges, x)

    def fill(self, x: float, weight: float = 1.0) -> None:
        i = self.find_bin(x)
        self.values[i] += weight
        self.sumw2[i] += weight * weight

    def bin_center(self, i: int) -> float:
        self._check_bin(i)
        return float(0.5 * (self.edges[i - 1] + self.edges[i]))

    def bin_width(self, i: int) -> float:
        self._check_bin(i)
        return float(self.edges[i] - self.edges[i - 1])

    def integral(self) -> float:
        """Sum of the in-range bin contents."""
        return float(self.bin_values.sum())

    def scale(self, factor: float) -> None:
        self.values *= factor
        self.sumw2 *= factor * factor

    def reset(self) -> None:
        self.values[:] = 0.0
        self.sumw2[:] = 0.0

    def copy(self, title: str | None = None) -> "Histogram1D":
        clone = Histogram1D(self.edges, self.title if title is None else title)
        clone.values = self.values.copy()
        clone.sumw2 = self.sumw2.copy()
        return clone


class Histogram2D:
    """A two-dimensional weighted histogram."""

    def __init__(
        self, xedges: Sequence[float], yedges: Sequence[float], title: str = ""
    ) -> None:
        self.xedges = _check_edges(xedges)
        self.yedges = _check_edges(yedges)
        self.title = title
        shape = (self.nbins_x + 2, self.nbins_y + 2)
        self.values = np.zeros(shape)
        self.sumw2 = np.zeros(shape)

    @property
    def nbins_x(self) -> int:
        return self.xedges.size - 1

    @property
    def nbins_y(self) -> int:
        return self.yedges.size - 1

    @property
    def bin_values(self) -> np.ndarray:
        """Contents of the in-range bins, indexed [x, y]."""
        return self.values[1:-1, 1:-1]

    def find_bin(self, x: float, y: float) -> tuple[int, int]:
        return _find_bin(self.xedges, x), _find_bin(self.yedges, y)

    def fill(self, x: float, y: float, weight: float = 1.0) -> None:
        i, j = self.find_bin(x, y)
        self.values[i, j] += weight
        self.sumw2[i, j] += weight * weight

    def reset(self) -> None:
        self.values[:] = 0.0
        self.sumw2[:] = 0.0

    def copy(self, title: str | None = None) -> "Histogram2D":
        clone = Histogram2D(
            self.xedges, self.yedges, self.title if title is None else title
        )
        clone.values = self.values.copy()
        clone.sumw2 = self.sumw2.copy()
        return clone