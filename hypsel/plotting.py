"""Stacked-histogram and systematic-variation plots."""

from __future__ import annotations

import re
from collections.abc import Sequence
from pathlib import Path

import numpy as np
from matplotlib.figure import Figure

from hypsel.comparison import hist_max, hist_max_with_error
from hypsel.histogram import Histogram1D
from hypsel.labels import (
    BeamMode,
    legend_columns,
    pot_label,
    watermark_text,
)

_SINGLE_SIZE = (8.0, 6.0)
_DUAL_SIZE = (8.0, 7.5)
_SINGLE_SPLIT = 0.85
_DUAL_SPLIT_LOW = 0.3
_DUAL_SPLIT_HIGH = 0.9
_FORMATS = ("png", "pdf")

# Common integer colour indices mapped to matplotlib colours.
_INDEXED_COLORS = {
    0: "white",
    1: "black",
    2: "red",
    3: "#00ff00",
    4: "blue",
    5: "yellow",
    6: "magenta",
    7: "cyan",
    8: "#59d454",
    9: "#5954d9",
    14: "#333333",
    30: "#339933",
    38: "#7fb2e5",
    43: "#b28c59",
    46: "#cc3333",
}


def _color(spec, index: int):
    if spec is None:
        return f"C{index % 10}"
    if isinstance(spec, (int, np.integer)) and not isinstance(spec, bool):
        return _INDEXED_COLORS.get(int(spec), f"C{int(spec) % 10}")
    return spec


def _mpl_text(text: str) -> str:
    return re.sub(r"#times 10\^\{(-?\d+)\}", r"$\\times 10^{\1}$", text)


def _check_runs(
    modes: Sequence[int], runs: Sequence[int], pots: Sequence[float]
) -> list[BeamMode]:
    if not len(modes) == len(runs) == len(pots) or len(modes) >= 3:
        raise ValueError(
            "Beam modes, runs and POT must have the same length, at most 2"
        )
    return [BeamMode(m) for m in modes]


def _is_fhc_rhc(modes: Sequence[BeamMode]) -> bool:
    return len(modes) == 2 and modes[0] == BeamMode.FHC and modes[1] == BeamMode.RHC


def _pot_labels(modes: Sequence[BeamMode], pots: Sequence[float]) -> list[str]:
    """Exposure labels that are shown on the plot."""
    if not pots:
        return []
    first = pot_label(modes[0], pots[0])
    if len(modes) == 2 and modes[0] == BeamMode.BNB and modes[1] == BeamMode.BNB:
        first = pot_label(BeamMode.BNB, pots[0] + pots[1])
    labels = [first]
    if _is_fhc_rhc(modes):
        labels.append(pot_label(modes[1], pots[1]))
    return labels


def _axis_titles(ax, title: str, show_x: bool = True) -> None:
    parts = title.split(";")
    if show_x and len(parts) > 1:
        ax.set_xlabel(parts[1])
    if len(parts) > 2:
        ax.set_ylabel(parts[2])


def _check_bin_labels(bin_labels: Sequence[str], nbins: int) -> list[str]:
    labels = list(bin_labels or ())
    if labels and len(labels) != nbins:
        raise ValueError(f"Got {len(labels)} bin labels for {nbins} bins")
    return labels


def _apply_bin_labels(ax, hist: Histogram1D, labels: Sequence[str]) -> None:
    if labels:
        centers = [hist.bin_center(i) for i in range(1, hist.nbins + 1)]
        ax.set_xticks(centers)
        ax.set_xticklabels(labels)


def _legend_axes(fig: Figure, bottom: float):
    ax = fig.add_axes([0.0, bottom, 1.0, 1.0 - bottom])
    ax.axis("off")
    return ax


def _annotate(ax, watermark: str | None, pot_texts: Sequence[str], chi2_text: str | None) -> None:
    y = 0.97
    if watermark is not None:
        ax.text(0.98, y, watermark, transform=ax.transAxes, ha="right",
                va="top", fontweight="bold")
        y -= 0.08
    for text in pot_texts:
        ax.text(0.98, y, _mpl_text(text), transform=ax.transAxes, ha="right", va="top")
        y -= 0.08
    if chi2_text is not None:
        ax.text(0.03, 0.97, chi2_text, transform=ax.transAxes, ha="left", va="top")


def _set_top(ax, top: float) -> None:
    if top > 0:
        ax.set_ylim(0.0, top)


def _save(fig: Figure, directory: Path, stem: str) -> list[Path]:
    directory.mkdir(parents=True, exist_ok=True)
    paths = []
    for fmt in _FORMATS:
        path = directory / f"{stem}.{fmt}"
        fig.savefig(path)
        paths.append(path)
    return paths


def _ratio(errors: Histogram1D, data: Histogram1D):
    """Prediction band and data as ratios to the prediction, with y range."""
    pred = errors.bin_values
    ok = pred > 0
    safe = np.where(ok, pred, 1.0)
    mc_err = np.where(ok, errors.errors[1:-1] / safe, 0.0)
    data_ratio = np.where(ok, data.bin_values / safe, 1.0)
    data_err = np.where(ok, data.errors[1:-1] / safe, 0.0)
    low, high = 1.0, 1.0
    if ok.any():
        low = min(low, float(np.min(np.minimum(1 - mc_err, data_ratio - data_err)[ok])))
        high = max(high, float(np.max(np.maximum(1 + mc_err, data_ratio + data_err)[ok])))
    return mc_err, data_ratio, data_err, (low, high)


def draw_histogram(
    hists: Sequence[Histogram1D],
    errors: Histogram1D,
    data: Histogram1D | None,
    captions: Sequence[str],
    plot_dir: str | Path,
    label: str,
    modes: Sequence[int],
    runs: Sequence[int],
    pots: Sequence[float],
    has_data: bool,
    colors: Sequence | None = None,
    bin_labels: Sequence[str] = (),
    chi2_ndof: tuple[float, int] = (0.0, 0),
    data_points: Sequence[float] = (),
) -> list[Path]:
    """Draw a stack of predictions with their error band and optional data.

    ``errors`` is the total prediction whose errors already include any
    systematic uncertainty.  With data a second plot with a data/prediction
    ratio panel is written.  Returns the paths of the files written.
    """
    beam_modes = _check_runs(modes, runs, pots)
    if has_data and data is None:
        raise ValueError("has_data flag set to true but data histogram is None")
    if not hists:
        raise ValueError("At least one histogram is needed")
    nbins = hists[0].nbins
    labels = _check_bin_labels(bin_labels, nbins)
    if len(captions) < len(hists):
        raise ValueError("Need one caption per histogram")
    if colors is not None and len(colors) < len(hists):
        raise ValueError("Need one colour per histogram")
    points = [float(x) for x in data_points or ()]

    watermark = watermark_text(has_data or bool(points), runs)
    pot_texts = _pot_labels(beam_modes, pots)
    chi2_text = None
    if has_data and chi2_ndof[1] != 0:
        chi2_text = f"$\\chi^{{2}}$/ndof = {chi2_ndof[0]:.1f}/{chi2_ndof[1]}"
    ncols = legend_columns(len(hists) + int(has_data))

    maximum = hist_max_with_error(errors)
    if has_data:
        maximum = max(maximum, hist_max_with_error(data))
    top = maximum * (1.4 if _is_fhc_rhc(beam_modes) else 1.25)

    edges = errors.edges
    centers = 0.5 * (edges[:-1] + edges[1:])

    def draw_stack(ax):
        handles, texts = [], []
        bottom = np.zeros(nbins)
        for i, hist in enumerate(hists):
            caption = captions[i]
            text = f"{caption} = {hist.integral():.1f}" if has_data else caption
            color = _color(None if colors is None else colors[i], i)
            patch = ax.stairs(bottom + hist.bin_values, edges, baseline=bottom.copy(),
                              fill=True, color=color)
            bottom = bottom + hist.bin_values
            handles.append(patch)
            texts.append(text)
        content = errors.bin_values
        err = errors.errors[1:-1]
        ax.stairs(content + err, edges, baseline=content - err, fill=True,
                  facecolor="none", edgecolor="black", hatch="///", linewidth=0)
        if has_data:
            container = ax.errorbar(centers, data.bin_values, yerr=data.errors[1:-1],
                                    fmt="o", color="black", markersize=4)
            handles.append(container)
            texts.append(f"Data = {data.integral():.1f}")
        return handles, texts

    out_dir = Path(plot_dir)

    fig = Figure(figsize=_SINGLE_SIZE)
    legend_ax = _legend_axes(fig, _SINGLE_SPLIT)
    ax = fig.add_axes([0.1, 0.1, 0.86, _SINGLE_SPLIT - 0.11])
    handles, texts = draw_stack(ax)
    if points:
        (low_marks,) = ax.plot(points, [maximum * 0.039] * len(points), "v",
                               color="black", markersize=10, linestyle="none")
        ax.plot(points, [maximum * 0.075] * len(points), "+", color="black",
                markersize=10, linestyle="none")
        handles.append(low_marks)
        texts.append("Events")
    ax.set_xlim(edges[0], edges[-1])
    _set_top(ax, top)
    _axis_titles(ax, errors.title)
    _apply_bin_labels(ax, errors, labels)
    _annotate(ax, watermark, pot_texts, chi2_text)
    legend_ax.legend(handles, texts, ncol=ncols, loc="center", frameon=False)
    written = _save(fig, out_dir, label)

    if has_data:
        fig = Figure(figsize=_DUAL_SIZE)
        legend_ax = _legend_axes(fig, _DUAL_SPLIT_HIGH)
        main = fig.add_axes([0.1, _DUAL_SPLIT_LOW, 0.86, _DUAL_SPLIT_HIGH - _DUAL_SPLIT_LOW - 0.01])
        ratio_ax = fig.add_axes([0.1, 0.07, 0.86, _DUAL_SPLIT_LOW - 0.07], sharex=main)
        handles, texts = draw_stack(main)
        main.set_xlim(edges[0], edges[-1])
        _set_top(main, top)
        _axis_titles(main, errors.title, show_x=False)
        main.tick_params(labelbottom=False)
        _annotate(main, watermark, pot_texts, chi2_text)
        legend_ax.legend(handles, texts, ncol=ncols, loc="center", frameon=False)

        mc_err, data_ratio, data_err, (low, high) = _ratio(errors, data)
        ones = np.ones(nbins)
        ratio_ax.stairs(ones + mc_err, edges, baseline=ones - mc_err, fill=True,
                        facecolor="none", edgecolor="black", hatch="///", linewidth=0)
        ratio_ax.stairs(ones, edges, color="black", linewidth=0.5)
        ratio_ax.errorbar(centers, data_ratio, yerr=data_err, fmt="o",
                          color="black", markersize=4)
        ratio_ax.set_ylim(0.95 * low, 1.05 * high)
        ratio_ax.set_ylabel("Data/MC")
        ratio_ax.grid(axis="y")
        _axis_titles(ratio_ax, errors.title)
        ratio_ax.set_ylabel("Data/MC")
        _apply_bin_labels(ratio_ax, errors, labels)
        written += _save(fig, out_dir, f"{label}_Ratio")

    return written


def draw_histogram_sys(
    hists: Sequence[Histogram1D],
    cv: Histogram1D,
    plot_dir: str | Path,
    label: str,
    sys_type: str,
    dial_name: str,
    modes: Sequence[int],
    runs: Sequence[int],
    pots: Sequence[float],
    bin_labels: Sequence[str] = (),
) -> list[Path]:
    """Overlay the universes of a systematic dial on the central value.

    Returns the paths of the files written.
    """
    beam_modes = _check_runs(modes, runs, pots)
    labels = _check_bin_labels(bin_labels, cv.nbins)

    fig = Figure(figsize=_SINGLE_SIZE)
    legend_ax = _legend_axes(fig, _SINGLE_SPLIT)
    ax = fig.add_axes([0.1, 0.1, 0.86, _SINGLE_SPLIT - 0.11])

    handles, texts = [], []
    cv_line = ax.stairs(cv.bin_values, cv.edges, color="black", linewidth=2, zorder=3)
    handles.append(cv_line)
    texts.append("Central Value")

    count = len(hists)
    for i, hist in enumerate(hists):
        if count > 2:
            color, text = "#00ff00", ("Variations" if i == 0 else None)
        elif count == 1:
            color, text = "red", "Alternative Model"
        elif i == 0:
            color, text = "red", "- 1 $\\sigma$"
        else:
            color, text = "blue", "+ 1 $\\sigma$"
        line = ax.stairs(hist.bin_values, hist.edges, color=color)
        if text is not None:
            handles.append(line)
            texts.append(text)

    maximum = max([0.0, *(hist_max(h) for h in hists), hist_max(cv)])
    top = maximum * (1.35 if _is_fhc_rhc(beam_modes) else 1.25)
    ax.set_xlim(cv.edges[0], cv.edges[-1])
    _set_top(ax, top)
    _axis_titles(ax, cv.title)
    _apply_bin_labels(ax, cv, labels)
    _annotate(ax, watermark_text(False), _pot_labels(beam_modes, pots), None)
    legend_ax.legend(handles, texts, ncol=2, loc="center", frameon=False)

    return _save(fig, Path(plot_dir), f"{label}_Sys_{sys_type}_{dial_name}")