"""Statistical comparisons between predicted and observed histograms."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

import numpy as np

from hypsel.histogram import Histogram1D, Histogram2D

logger = logging.getLogger(__name__)

# Starting point for the maximum searches; any real bin exceeds it.
_MAX_FLOOR = -1e10


def _as_matrix(cov: Histogram2D | np.ndarray | Sequence[Sequence[float]] | None) -> np.ndarray:
    """Return a covariance as a plain 2D array (empty if none was given)."""
    if cov is None:
        return np.zeros((0, 0))
    if isinstance(cov, Histogram2D):
        return np.array(cov.bin_values, dtype=float)
    arr = np.asarray(cov, dtype=float)
    if arr.size == 0:
        return np.zeros((0, 0))
    if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
        raise ValueError(f"Covariance matrix must be square, got shape {arr.shape}")
    return arr


def chi2(
    pred: Histogram1D,
    data: Histogram1D,
    cov: Histogram2D | np.ndarray | Sequence[Sequence[float]] | None = None,
    skip: Iterable[int] = (),
) -> tuple[float, int]:
    """Chi-squared of ``pred`` against ``data``.

    ``cov`` holds the systematic covariance only; the statistical errors of
    both histograms are added on the diagonal.  Bins with no predicted events
    and bins listed in ``skip`` (numbered from 1) are left out.  Returns the
    chi-squared and the number of bins used.
    """
    nbins = data.nbins
    skipped = set(skip)
    used = [
        i for i in range(1, nbins + 1)
        if pred.values[i] > 0 and i not in skipped
    ]
    idx = np.array(used, dtype=int)

    matrix = _as_matrix(cov)
    if matrix.size:
        if matrix.shape[0] != nbins:
            raise ValueError(
                "Attempting to get chi2 score when covariance matrix has size "
                f"{matrix.shape[0]}x{matrix.shape[1]}, hists have size {nbins}"
            )
        total = matrix[np.ix_(idx - 1, idx - 1)].copy()
    else:
        total = np.zeros((idx.size, idx.size))

    if idx.size == 0:
        logger.info("Chi2/ndof = 0/0")
        return 0.0, 0

    total[np.diag_indices(idx.size)] += pred.sumw2[idx] + data.sumw2[idx]
    diff = pred.values[idx] - data.values[idx]
    score = float(diff @ np.linalg.inv(total) @ diff)

    logger.info("Chi2/ndof = %g/%d", score, idx.size)
    return score, int(idx.size)


def make_error_band(
    hists: Sequence[Histogram1D],
    cov: Histogram2D | np.ndarray | Sequence[Sequence[float]] | None = None,
) -> Histogram1D:
    """Sum a stack of histograms, combining their statistical errors.

    If ``cov`` is given, its diagonal (systematic variance) is added to each
    bin's variance.
    """
    if not hists:
        raise ValueError("At least one histogram is needed for an error band")
    band = hists[0].copy()
    band.reset()

    inner = slice(1, band.nbins + 1)
    for hist in hists:
        if hist.nbins != band.nbins:
            raise ValueError("All histograms in the stack must have the same binning")
        band.values[inner] += hist.values[inner]
        band.sumw2[inner] += hist.sumw2[inner]

    matrix = _as_matrix(cov)
    if matrix.size:
        if matrix.shape[0] < band.nbins:
            raise ValueError(
                f"Covariance matrix has {matrix.shape[0]} bins, expected {band.nbins}"
            )
        band.sumw2[inner] += np.diag(matrix)[: band.nbins]
    return band


def hist_max_with_error(hist: Histogram1D) -> float:
    """Largest bin content plus its error."""
    tops = hist.bin_values + hist.errors[1:-1]
    return float(max(_MAX_FLOOR, tops.max()))


def hist_max(hist: Histogram1D) -> float:
    """Largest bin content, ignoring errors."""
    return float(max(_MAX_FLOOR, hist.bin_values.max()))


def matrix_histogram(
    matrix: np.ndarray | Sequence[Sequence[float]],
    example: Histogram2D,
    name: str = "",
) -> Histogram2D:
    """Copy ``example``'s binning and titles and fill it from ``matrix``.

    The result carries the name ``h_<name>`` in its ``name`` attribute.
    """
    arr = np.asarray(matrix, dtype=float)
    n = example.nbins_x
    if arr.ndim != 2 or arr.shape[0] < n or arr.shape[1] < min(n, example.nbins_y):
        raise ValueError(
            f"Matrix of shape {arr.shape} does not cover {n}x{n} histogram bins"
        )
    hist = example.copy()
    m = min(n, example.nbins_y)
    hist.values[1 : n + 1, 1 : m + 1] = arr[:n, :m]
    hist.name = f"h_{name}"
    return hist