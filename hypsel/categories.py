"""Histograms of a selected variable split by event category."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path

import numpy as np

from hypsel.histogram import Histogram1D
from hypsel.plotting import draw_histogram

# Types left out of the saved histograms of the second labelling.
_NOT_SAVED = ("EXT", "Dirt")


class CategoryHistograms:
    """Histograms of one variable by event type, by a second type labelling
    and by interaction process, plus the total prediction and the data."""

    def __init__(
        self,
        edges: Sequence[float],
        title: str = "",
        types: Iterable[str] = (),
        types2: Iterable[str] = (),
        procs: Iterable[str] = (),
    ) -> None:
        self.all = Histogram1D(edges, title)
        self.data = Histogram1D(edges, title)
        self.edges = self.all.edges
        self.title = title
        self.by_type = {name: Histogram1D(edges, title) for name in types}
        self.by_type2 = {name: Histogram1D(edges, title) for name in types2}
        self.by_proc = {name: Histogram1D(edges, title) for name in procs}
        self.bin_labels: list[str] = []
        self.has_data = False

    @classmethod
    def uniform(
        cls,
        n: int,
        low: float,
        high: float,
        title: str = "",
        types: Iterable[str] = (),
        types2: Iterable[str] = (),
        procs: Iterable[str] = (),
    ) -> "CategoryHistograms":
        """Build with ``n`` equal-width bins between ``low`` and ``high``."""
        edges = Histogram1D.uniform(n, low, high).edges
        return cls(edges, title, types, types2, procs)

    @property
    def nbins(self) -> int:
        return self.all.nbins

    def _groups(self):
        return (self.by_type, self.by_type2, self.by_proc)

    def fill(
        self,
        event_type: str,
        event_type2: str,
        proc: str,
        variable: float,
        weight: float = 1.0,
    ) -> None:
        """Add an event; data events go to the data histogram only."""
        if event_type == "Data":
            self.data.fill(variable, weight)
            self.has_data = True
            return
        targets = [
            (self.by_type, event_type),
            (self.by_type2, event_type2),
            (self.by_proc, proc),
        ]
        for group, name in targets:
            if name not in group:
                raise KeyError(f"Unknown event category {name}")
        self.all.fill(variable, weight)
        for group, name in targets:
            group[name].fill(variable, weight)

    def set_bin_labels(self, labels: Sequence[str]) -> None:
        labels = list(labels)
        if len(labels) != self.nbins:
            raise ValueError("Set of bin labels does not match number of bins!")
        self.bin_labels = labels

    def prediction(self, bin_index: int, kind: str = "") -> float:
        """Content of a bin for the total (""/"All"), data, a type or a process."""
        if kind in ("", "All"):
            hist = self.all
        elif kind == "Data":
            hist = self.data
        elif kind in self.by_type:
            hist = self.by_type[kind]
        elif kind in self.by_proc:
            hist = self.by_proc[kind]
        else:
            raise KeyError(f"Type/Proc {kind} not found")
        return float(hist.values[bin_index])

    def scale(self, factor: float = 1.0, signal_scale: float = 1.0) -> None:
        """Scale every category histogram, and the signal ones once more.

        The total prediction and the data are left unscaled.
        """
        for group in self._groups():
            for hist in group.values():
                hist.scale(factor)
        for group, name in (
            (self.by_proc, "Signal"),
            (self.by_type, "Signal"),
            (self.by_type2, "DirectLambda"),
        ):
            if name in group:
                group[name].scale(signal_scale)

    def width_scale(self) -> None:
        """Divide bin contents by bin widths.

        Category errors are scaled too; the total and data keep their errors.
        """
        widths = np.diff(self.edges)
        for group in self._groups():
            for hist in group.values():
                hist.values[1:-1] /= widths
                hist.sumw2[1:-1] /= widths * widths
        self.data.values[1:-1] /= widths
        self.all.values[1:-1] /= widths

    def draw(
        self,
        plot_dir: str | Path,
        label: str,
        mode: int,
        run: int,
        pot: float,
        captions: Sequence[Sequence[str]] | None = None,
        colors: Sequence[Sequence] | None = None,
    ) -> list[Path]:
        """Draw the three category stacks and save the histograms.

        ``captions`` and ``colors`` hold one list each for the types, the
        second type labelling and the processes.  The histograms are saved to
        ``<label>_Histograms.npz``.  Returns the paths of the files written.
        """
        groups = (
            ("ByType", self.by_type),
            ("ByType2", self.by_type2),
            ("ByProc", self.by_proc),
        )
        if captions is not None and len(captions) != len(groups):
            raise ValueError("Need caption lists for types, types2 and procs")
        if colors is not None and len(colors) != len(groups):
            raise ValueError("Need colour lists for types, types2 and procs")

        errors = self.all.copy()
        written: list[Path] = []
        for i, (suffix, group) in enumerate(groups):
            if not group:
                continue
            caps = list(group) if captions is None else captions[i]
            cols = None if colors is None else colors[i]
            written += draw_histogram(
                list(group.values()), errors, self.data, caps, plot_dir,
                f"{label}_{suffix}", [mode], [run], [pot], self.has_data,
                cols, self.bin_labels, (0.0, 0),
            )

        saved = {name: h.bin_values for name, h in self.by_type.items()}
        saved.update(
            (name, h.bin_values)
            for name, h in self.by_type2.items()
            if name not in _NOT_SAVED
        )
        saved["All"] = self.all.bin_values
        saved["Data"] = self.data.bin_values
        saved["ErrorBand"] = errors.bin_values
        saved["edges"] = self.edges
        out_dir = Path(plot_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / f"{label}_Histograms.npz"
        np.savez(path, **saved)
        written.append(path)
        return written