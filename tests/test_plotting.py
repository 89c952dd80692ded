import pytest

from hypsel.histogram import Histogram1D
from hypsel.labels import BeamMode
from hypsel.plotting import draw_histogram, draw_histogram_sys


def _hist(values):
    hist = Histogram1D([0.0, 1.0, 2.0, 3.0], ";x;Events")
    for i, v in enumerate(values, start=1):
        hist.values[i] = v
        hist.sumw2[i] = v
    return hist


def _stack():
    return [_hist([1.0, 2.0, 3.0]), _hist([2.0, 1.0, 0.5])]


def _band(hists):
    band = hists[0].copy()
    for h in hists[1:]:
        band.values += h.values
        band.sumw2 += h.sumw2
    return band


def test_simulation_plot_writes_png_and_pdf(tmp_path):
    hists = _stack()
    paths = draw_histogram(hists, _band(hists), None, ["A", "B"], tmp_path, "stack",
                           [BeamMode.FHC], [1], [1e20], False)
    assert {p.name for p in paths} == {"stack.png", "stack.pdf"}
    assert all(p.exists() and p.stat().st_size > 0 for p in paths)


def test_data_plot_adds_ratio_files(tmp_path):
    hists = _stack()
    data = _hist([3.0, 3.0, 4.0])
    paths = draw_histogram(hists, _band(hists), data, ["A", "B"], tmp_path, "stack",
                           [BeamMode.FHC], [1], [1e20], True, chi2_ndof=(2.0, 3))
    names = {p.name for p in paths}
    assert {"stack_Ratio.png", "stack_Ratio.pdf", "stack.png"} <= names
    assert all(p.exists() for p in paths)


def test_two_runs_fhc_rhc_with_data(tmp_path):
    hists = _stack()
    data = _hist([3.0, 3.0, 4.0])
    paths = draw_histogram(hists, _band(hists), data, ["A", "B"], tmp_path, "two",
                           [BeamMode.FHC, BeamMode.RHC], [1, 3], [1e20, 2e20], True,
                           colors=[2, "blue"], bin_labels=["a", "b", "c"])
    assert len(paths) == 4


def test_missing_data_histogram_raises(tmp_path):
    hists = _stack()
    with pytest.raises(ValueError):
        draw_histogram(hists, _band(hists), None, ["A", "B"], tmp_path, "x",
                       [BeamMode.FHC], [1], [1e20], True)


def test_mismatched_run_lists_raise(tmp_path):
    hists = _stack()
    with pytest.raises(ValueError):
        draw_histogram(hists, _band(hists), None, ["A", "B"], tmp_path, "x",
                       [BeamMode.FHC], [1, 3], [1e20], False)


def test_three_running_periods_raise(tmp_path):
    hists = _stack()
    with pytest.raises(ValueError):
        draw_histogram(hists, _band(hists), None, ["A", "B"], tmp_path, "x",
                       [0, 0, 0], [1, 2, 3], [1e20, 1e20, 1e20], False)


def test_data_points_need_a_run(tmp_path):
    hists = _stack()
    with pytest.raises(ValueError):
        draw_histogram(hists, _band(hists), None, ["A", "B"], tmp_path, "x",
                       [], [], [], False, data_points=[0.5])


def test_unknown_beam_mode_raises(tmp_path):
    hists = _stack()
    with pytest.raises(ValueError):
        draw_histogram(hists, _band(hists), None, ["A", "B"], tmp_path, "x",
                       [7], [1], [1e20], False)


def test_bin_label_count_must_match(tmp_path):
    hists = _stack()
    with pytest.raises(ValueError):
        draw_histogram(hists, _band(hists), None, ["A", "B"], tmp_path, "x",
                       [BeamMode.FHC], [1], [1e20], False, bin_labels=["a"])


@pytest.mark.parametrize("n_universes", [1, 2, 5])
def test_sys_plot_file_names(tmp_path, n_universes):
    cv = _hist([1.0, 2.0, 3.0])
    universes = [_hist([1.1, 2.1, 2.9]) for _ in range(n_universes)]
    paths = draw_histogram_sys(universes, cv, tmp_path, "sel", "All", "dial",
                               [BeamMode.RHC], [3], [2e20])
    assert {p.name for p in paths} == {"sel_Sys_All_dial.png", "sel_Sys_All_dial.pdf"}
    assert all(p.exists() for p in paths)


def test_sys_plot_bin_label_mismatch(tmp_path):
    cv = _hist([1.0, 2.0, 3.0])
    with pytest.raises(ValueError):
        draw_histogram_sys([cv.copy()], cv, tmp_path, "sel", "All", "dial",
                           [BeamMode.FHC], [1], [1e20], bin_labels=["a", "b"])