"""Drawing of covariance-style matrices and systematic uncertainty breakdowns."""

from __future__ import annotations

import re
from collections.abc import Sequence
from pathlib import Path

import numpy as np
from matplotlib.figure import Figure

from hypsel.histogram import Histogram1D, Histogram2D
from hypsel.labels import matrix_cell_text, watermark_text

_MATRIX_SIZE = (8.0, 6.0)
_SINGLE_SIZE = (8.0, 6.0)
_SINGLE_SPLIT = 0.85
_FORMATS = ("png", "pdf")

# Line colours for the breakdown: the total first, then one per dial.
_LINE_COLORS = (
    "black", "red", "#59d454", "blue", "magenta", "#7fb2e5", "#cc3333",
    "#b28c59", "#339933", "#5954d9", "cyan", "#333333", "#00ff00",
)


def _mpl_text(text: str) -> str:
    return re.sub(r"#times 10\^\{(-?\d+)\}", r"$\\times 10^{\1}$", text)


def _save(fig: Figure, directory: Path, stem: str) -> list[Path]:
    directory.mkdir(parents=True, exist_ok=True)
    paths = []
    for fmt in _FORMATS:
        path = directory / f"{stem}.{fmt}"
        fig.savefig(path)
        paths.append(path)
    return paths


def _axis_titles(ax, title: str) -> None:
    parts = title.split(";")
    if len(parts) > 1:
        ax.set_xlabel(parts[1])
    if len(parts) > 2:
        ax.set_ylabel(parts[2])


def _as_square(matrix, nbins: int) -> np.ndarray:
    if isinstance(matrix, Histogram2D):
        arr = np.array(matrix.bin_values, dtype=float)
    else:
        arr = np.asarray(matrix, dtype=float)
    if arr.shape != (nbins, nbins):
        raise ValueError(
            f"Covariance matrix of shape {arr.shape} does not match {nbins} bins"
        )
    return arr


def draw_matrix(
    hist: Histogram2D,
    title: str,
    plot_dir: str | Path,
    use_labels: bool | Sequence[str] = False,
    use_text: bool = False,
) -> list[Path]:
    """Draw a 2D histogram as a colour map and save it as ``<title>.png/.pdf``.

    ``use_labels`` may be a list of bin labels used on both axes, or True to
    draw the axes in the larger label style.  With ``use_text`` each cell is
    annotated with its content to 3 significant figures and no colour bar is
    drawn.  Returns the paths of the files written.
    """
    labels: list[str] = []
    if not isinstance(use_labels, bool):
        labels = list(use_labels)
        if labels and (len(labels) != hist.nbins_x or len(labels) != hist.nbins_y):
            raise ValueError(
                f"Got {len(labels)} bin labels for a "
                f"{hist.nbins_x}x{hist.nbins_y} matrix"
            )
    large_labels = bool(use_labels) if isinstance(use_labels, bool) else bool(labels)

    fig = Figure(figsize=_MATRIX_SIZE)
    left = 0.15 if large_labels else 0.1
    right = 0.95 if use_text else 0.87
    ax = fig.add_axes([left, 0.1, right - left, 0.8])

    values = hist.bin_values
    mesh = ax.pcolormesh(hist.xedges, hist.yedges, values.T, cmap="viridis")
    if not use_text:
        fig.colorbar(mesh, ax=ax)
    else:
        xc = 0.5 * (hist.xedges[:-1] + hist.xedges[1:])
        yc = 0.5 * (hist.yedges[:-1] + hist.yedges[1:])
        for i, x in enumerate(xc):
            for j, y in enumerate(yc):
                ax.text(x, y, _mpl_text(matrix_cell_text(float(values[i, j]))),
                        ha="center", va="center", fontsize=8, color="white")

    _axis_titles(ax, hist.title)
    if labels:
        xc = 0.5 * (hist.xedges[:-1] + hist.xedges[1:])
        yc = 0.5 * (hist.yedges[:-1] + hist.yedges[1:])
        ax.set_xticks(xc)
        ax.set_xticklabels(labels)
        ax.set_yticks(yc)
        ax.set_yticklabels(labels)
    if large_labels:
        ax.tick_params(labelsize=12)

    watermark = watermark_text(False)
    if watermark is not None:
        ax.text(1.0, 1.01, watermark, transform=ax.transAxes, ha="right",
                va="bottom", fontweight="bold")

    return _save(fig, Path(plot_dir), title)


def draw_systematic_breakdown(
    covariances: Sequence[Histogram2D | np.ndarray | Sequence[Sequence[float]]],
    template: Histogram1D,
    captions: Sequence[str],
    plot_dir: str | Path,
    label: str,
) -> tuple[list[np.ndarray], np.ndarray, list[Path]]:
    """Plot the fractional uncertainty of each dial and of their sum.

    ``covariances`` are the fractional covariance matrices of the dials,
    binned like ``template``.  The summed matrix is drawn as well, as
    ``<label>_FCov``.  Returns the per-dial fractional errors, the total
    fractional error and the paths of the files written.
    """
    if len(covariances) != len(captions):
        raise ValueError("Need one caption per covariance matrix")
    if not covariances:
        raise ValueError("At least one covariance matrix is needed")

    nbins = template.nbins
    matrices = [_as_square(c, nbins) for c in covariances]
    total_cov = np.sum(matrices, axis=0)
    with np.errstate(invalid="ignore"):
        dial_errors = [np.sqrt(np.diag(m)) for m in matrices]
        total_error = np.sqrt(np.diag(total_cov))

    fig = Figure(figsize=_SINGLE_SIZE)
    legend_ax = fig.add_axes([0.0, _SINGLE_SPLIT, 1.0, 1.0 - _SINGLE_SPLIT])
    legend_ax.axis("off")
    ax = fig.add_axes([0.1, 0.1, 0.86, _SINGLE_SPLIT - 0.11])

    handles, texts = [], []
    for i, (err, caption) in enumerate(zip(dial_errors, captions)):
        color = _LINE_COLORS[1 + i % (len(_LINE_COLORS) - 1)]
        handles.append(ax.stairs(err, template.edges, color=color, linewidth=2))
        texts.append(caption)
    handles.append(ax.stairs(total_error, template.edges, color=_LINE_COLORS[0],
                             linewidth=3, linestyle="--"))
    texts.append("Total")

    top = float(np.nanmax(total_error)) if np.any(np.isfinite(total_error)) else 0.0
    ax.set_xlim(template.edges[0], template.edges[-1])
    if top > 0:
        ax.set_ylim(0.0, 1.15 * top)
    parts = template.title.split(";")
    if len(parts) > 1:
        ax.set_xlabel(parts[1])
    ax.set_ylabel("Frac. Unc.")

    watermark = watermark_text(False)
    if watermark is not None:
        ax.text(0.98, 0.97, watermark, transform=ax.transAxes, ha="right",
                va="top", fontweight="bold")

    n_entries = len(dial_errors) + 1
    ncols = 5 if n_entries > 12 else 4 if n_entries > 6 else 3
    legend_ax.legend(handles, texts, ncol=ncols, loc="center", frameon=False)

    out_dir = Path(plot_dir)
    written = _save(fig, out_dir, f"{label}_SysBreakdown")

    total_hist = Histogram2D(template.edges, template.edges, template.title)
    total_hist.values[1:-1, 1:-1] = total_cov
    written += draw_matrix(total_hist, f"{label}_FCov", out_dir, True, True)

    return dial_errors, total_error, written