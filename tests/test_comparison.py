import math

import numpy as np
import pytest

from hypsel.comparison import (
    chi2,
    hist_max,
    hist_max_with_error,
    make_error_band,
    matrix_histogram,
)
from hypsel.histogram import Histogram1D, Histogram2D


def _filled(values, edges=(0.0, 1.0, 2.0, 3.0)):
    hist = Histogram1D(edges)
    for i, count in enumerate(values):
        centre = hist.bin_center(i + 1)
        for _ in range(count):
            hist.fill(centre)
    return hist


def test_chi2_identical_histograms_is_zero():
    pred = _filled([3, 5, 2])
    score, ndof = chi2(pred, pred.copy())
    assert score == pytest.approx(0.0)
    assert ndof == 3


def test_chi2_single_bin_statistical_only():
    pred = _filled([4], edges=(0.0, 1.0))
    data = _filled([2], edges=(0.0, 1.0))
    score, ndof = chi2(pred, data)
    assert score == pytest.approx(4 / 6)
    assert ndof == 1


def test_chi2_excludes_empty_prediction_bins():
    pred = _filled([3, 0, 2])
    data = _filled([1, 7, 2])
    _, ndof = chi2(pred, data)
    assert ndof == 2


def test_chi2_skip_removes_bins():
    pred = _filled([3, 5, 2])
    data = _filled([1, 5, 4])
    full, ndof_full = chi2(pred, data)
    partial, ndof_partial = chi2(pred, data, skip=[1])
    assert ndof_partial == ndof_full - 1
    assert partial < full


def test_chi2_systematic_covariance_lowers_score():
    pred = _filled([3, 5, 2])
    data = _filled([1, 8, 4])
    stat_only, _ = chi2(pred, data)
    with_sys, _ = chi2(pred, data, cov=np.eye(3) * 10.0)
    assert with_sys < stat_only


def test_chi2_accepts_histogram_covariance():
    pred = _filled([3, 5, 2])
    data = _filled([1, 8, 4])
    cov = Histogram2D(pred.edges, pred.edges)
    cov.values[1:-1, 1:-1] = np.eye(3) * 10.0
    assert chi2(pred, data, cov=cov)[0] == pytest.approx(
        chi2(pred, data, cov=np.eye(3) * 10.0)[0]
    )


def test_chi2_wrong_covariance_size_raises():
    pred = _filled([3, 5, 2])
    with pytest.raises(ValueError):
        chi2(pred, pred.copy(), cov=np.eye(2))


def test_chi2_no_usable_bins():
    pred = _filled([0, 0, 0])
    assert chi2(pred, _filled([1, 1, 1])) == (0.0, 0)


def test_error_band_sums_contents_and_variances():
    a = _filled([1, 2, 3])
    b = _filled([4, 0, 1])
    band = make_error_band([a, b])
    np.testing.assert_allclose(band.bin_values, a.bin_values + b.bin_values)
    np.testing.assert_allclose(band.sumw2[1:-1], a.sumw2[1:-1] + b.sumw2[1:-1])


def test_error_band_adds_covariance_diagonal():
    a = _filled([1, 2, 3])
    cov = np.diag([1.0, 2.0, 3.0]) + 0.5
    band = make_error_band([a], cov)
    np.testing.assert_allclose(band.sumw2[1:-1], a.sumw2[1:-1] + np.diag(cov))
    np.testing.assert_allclose(band.bin_values, a.bin_values)


def test_error_band_leaves_inputs_untouched():
    a = _filled([1, 2, 3])
    before = a.values.copy()
    make_error_band([a, a])
    np.testing.assert_array_equal(a.values, before)


def test_error_band_requires_histograms():
    with pytest.raises(ValueError):
        make_error_band([])


def test_hist_max_and_with_error():
    hist = _filled([1, 4, 2])
    assert hist_max(hist) == pytest.approx(4.0)
    assert hist_max_with_error(hist) == pytest.approx(4.0 + math.sqrt(4.0))
    assert hist_max_with_error(hist) >= hist_max(hist)


def test_matrix_histogram_copies_matrix():
    edges = [0.0, 1.0, 2.0]
    example = Histogram2D(edges, edges, "cov;x;y")
    matrix = [[1.0, 2.0], [3.0, 4.0]]
    hist = matrix_histogram(matrix, example, "Cov")
    np.testing.assert_array_equal(hist.bin_values, np.array(matrix))
    assert hist.title == example.title
    assert hist.name == "h_Cov"
    assert example.bin_values.sum() == 0


def test_matrix_histogram_too_small_raises():
    edges = [0.0, 1.0, 2.0, 3.0]
    with pytest.raises(ValueError):
        matrix_histogram(np.eye(2), Histogram2D(edges, edges))