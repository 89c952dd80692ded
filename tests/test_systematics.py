import numpy as np
import pytest

from hypsel.histogram import Histogram1D
from hypsel.systematics import SystematicHistograms, SysType, covariance

EDGES = [0.0, 1.0, 2.0, 4.0]


def test_dual_unisim_matches_single_for_symmetric_shift():
    cv = [10.0, 20.0, 5.0]
    d = np.array([1.0, -2.0, 0.5])
    single, _ = covariance([np.add(cv, d)], cv, SysType.SINGLE_UNISIM)
    dual, _ = covariance([np.subtract(cv, d), np.add(cv, d)], cv, SysType.DUAL_UNISIM)
    assert np.allclose(single, dual)


def test_multisim_agrees_with_numpy_cov():
    rng = np.random.default_rng(1)
    rows = rng.uniform(5, 15, size=(20, 3))
    cov, _ = covariance(list(rows), [10.0, 10.0, 10.0], SysType.MULTISIM)
    assert np.allclose(cov, np.cov(rows, rowvar=False))


def test_covariance_symmetric_and_nonnegative_diagonal():
    rows = [[1.0, 3.0, 2.0], [2.0, 1.0, 4.0], [3.0, 2.0, 1.0]]
    cov, frac = covariance(rows, [2.0, 2.0, 2.0], SysType.MULTISIM)
    assert np.allclose(cov, cov.T)
    assert np.all(np.diag(cov) >= 0)
    assert np.allclose(frac, frac.T)


def test_fractional_covariance_relation_for_unisim():
    cv = np.array([4.0, 8.0, 2.0])
    cov, frac = covariance([cv * 1.1], cv, SysType.SINGLE_UNISIM)
    assert np.allclose(frac * np.outer(cv, cv), cov)


def test_empty_central_bins_are_zeroed():
    cv = [3.0, 0.0, 5.0]
    cov, frac = covariance([[4.0, 7.0, 6.0]], cv, SysType.SINGLE_UNISIM)
    assert np.all(cov[1, :] == 0)
    assert np.all(cov[:, 1] == 0)
    assert np.all(frac[1, :] == 0)
    assert cov[0, 2] == pytest.approx(1.0)


def test_multisim_needs_two_universes():
    with pytest.raises(ValueError):
        covariance([[1.0, 2.0]], [1.0, 2.0], SysType.MULTISIM)


def test_mismatched_binning_rejected():
    with pytest.raises(ValueError):
        covariance([[1.0, 2.0]], [1.0, 2.0, 3.0], SysType.SINGLE_UNISIM)


def test_unisim_universe_counts_are_fixed():
    sys = SystematicHistograms(EDGES, "t", ["Signal", "Other"])
    sys.add_systematic(SysType.SINGLE_UNISIM, 50, "a")
    sys.add_systematic(SysType.DUAL_UNISIM, 50, "b")
    sys.add_systematic(SysType.MULTISIM, 7, "c")
    assert len(sys.histograms["a"]["Signal"]) == 1
    assert len(sys.histograms["b"]["All"]) == 2
    assert len(sys.histograms["c"]["Other"]) == 7


def test_fill_goes_to_type_and_all():
    sys = SystematicHistograms(EDGES, "", ["Signal", "Other"])
    sys.add_systematic(SysType.MULTISIM, 3, "dial")
    sys.fill("Signal", 0.5, "dial", 2, 2.0)
    assert sys.histograms["dial"]["Signal"][2].integral() == pytest.approx(2.0)
    assert sys.histograms["dial"]["All"][2].integral() == pytest.approx(2.0)
    assert sys.histograms["dial"]["Other"][2].integral() == 0.0
    assert sys.histograms["dial"]["Signal"][0].integral() == 0.0


def test_fill_with_second_label():
    sys = SystematicHistograms(EDGES, "", ["Signal", "DirectLambda"])
    sys.add_systematic(SysType.SINGLE_UNISIM, 1, "dial")
    sys.fill(("Signal", "DirectLambda"), 1.5, "dial", 0, 1.0)
    assert sys.histograms["dial"]["DirectLambda"][0].integral() == pytest.approx(1.0)
    assert sys.histograms["dial"]["All"][0].integral() == pytest.approx(1.0)


@pytest.mark.parametrize("weight", [float("nan"), float("inf")])
def test_non_finite_weights_skipped(weight):
    sys = SystematicHistograms(EDGES, "", ["Signal"])
    sys.add_systematic(SysType.SINGLE_UNISIM, 1, "dial")
    sys.fill("Signal", 0.5, "dial", 0, weight)
    assert sys.histograms["dial"]["All"][0].integral() == 0.0


def test_data_events_skipped():
    sys = SystematicHistograms(EDGES, "", ["Data", "Signal"])
    sys.add_systematic(SysType.SINGLE_UNISIM, 1, "dial")
    sys.fill("Data", 0.5, "dial", 0, 1.0)
    assert sys.histograms["dial"]["All"][0].integral() == 0.0


def test_fill_all_spreads_weights_over_universes():
    sys = SystematicHistograms(EDGES, "", ["Signal"])
    sys.add_systematic(SysType.MULTISIM, 3, "dial")
    sys.fill_all("Signal", 3.0, "dial", [1.0, 2.0, 3.0])
    totals = [h.integral() for h in sys.histograms["dial"]["All"]]
    assert totals == pytest.approx([1.0, 2.0, 3.0])


def test_fill_out_of_range_universe_raises():
    sys = SystematicHistograms(EDGES, "", ["Signal"])
    sys.add_systematic(SysType.DUAL_UNISIM, 2, "dial")
    with pytest.raises(IndexError):
        sys.fill("Signal", 0.5, "dial", 5, 1.0)


def test_covariance_matrix_from_filled_histograms():
    sys = SystematicHistograms(EDGES, "", ["Signal"])
    sys.add_systematic(SysType.DUAL_UNISIM, 2, "dial")
    central = Histogram1D(EDGES)
    for x in (0.5, 1.5, 3.0):
        central.fill(x, 10.0)
        sys.fill("Signal", x, "dial", 0, 9.0)
        sys.fill("Signal", x, "dial", 1, 11.0)
    cov, frac = sys.covariance_matrix("dial", central)
    assert np.allclose(np.diag(cov), [1.0, 1.0, 1.0])
    assert np.allclose(frac * 100.0, cov)


def test_covariance_matrix_unknown_name():
    sys = SystematicHistograms(EDGES, "", ["Signal"])
    with pytest.raises(KeyError):
        sys.covariance_matrix("missing", [1.0, 1.0, 1.0])


def test_width_scale_divides_by_widths():
    sys = SystematicHistograms(EDGES, "", ["Signal"])
    sys.add_systematic(SysType.SINGLE_UNISIM, 1, "dial")
    sys.fill("Signal", 3.0, "dial", 0, 4.0)
    hist = sys.histograms["dial"]["All"][0]
    before_value = hist.values[3]
    before_error = hist.errors[3]
    sys.width_scale()
    assert hist.values[3] == pytest.approx(before_value / 2.0)
    assert hist.errors[3] == pytest.approx(before_error / 2.0)


def test_all_is_reserved():
    with pytest.raises(ValueError):
        SystematicHistograms(EDGES, "", ["All"])