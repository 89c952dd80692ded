"""Histograms of a variable in systematic universes and their covariances."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from enum import IntEnum

import numpy as np

from hypsel.histogram import Histogram1D

ALL = "All"


class SysType(IntEnum):
    """How the universes of a systematic dial were generated."""

    MULTISIM = 0
    SINGLE_UNISIM = 1
    DUAL_UNISIM = 2


_FIXED_UNIVERSES = {SysType.SINGLE_UNISIM: 1, SysType.DUAL_UNISIM: 2}


def _contents(hist: Histogram1D | Sequence[float] | np.ndarray) -> np.ndarray:
    if isinstance(hist, Histogram1D):
        return np.array(hist.bin_values, dtype=float)
    return np.asarray(hist, dtype=float)


def covariance(
    universes: Sequence[Histogram1D | Sequence[float]],
    central: Histogram1D | Sequence[float],
    systype: SysType | int,
) -> tuple[np.ndarray, np.ndarray]:
    """Covariance and fractional covariance of bin contents across universes.

    Multisims use the sample covariance about the universe mean; a single
    unisim uses the shift from the central value; a dual unisim uses a
    quarter of the product of the differences between the two universes.
    Entries involving a bin with no central-value content are zero.
    """
    systype = SysType(systype)
    cv = _contents(central)
    rows = np.array([_contents(u) for u in universes], dtype=float)
    if rows.ndim != 2 or rows.shape[1] != cv.size:
        raise ValueError("Universes must all have the same binning as the central value")

    n = rows.shape[0]
    if systype is SysType.MULTISIM:
        if n < 2:
            raise ValueError("A multisim covariance needs at least 2 universes")
        mean = rows.mean(axis=0)
        dev = rows - mean
        cov = dev.T @ dev / (n - 1)
    else:
        needed = _FIXED_UNIVERSES[systype]
        if n < needed:
            raise ValueError(f"{systype.name} needs {needed} universe(s), got {n}")
        mean = cv
        if systype is SysType.SINGLE_UNISIM:
            shift = rows[0] - cv
            cov = np.outer(shift, shift)
        else:
            shift = rows[1] - rows[0]
            cov = np.outer(shift, shift) / 4

    filled = cv > 0
    keep = np.outer(filled, filled)
    cov = np.where(keep, cov, 0.0)
    with np.errstate(divide="ignore", invalid="ignore"):
        frac = cov / np.outer(mean, mean)
    frac = np.where(keep, frac, 0.0)
    return cov, frac


class SystematicHistograms:
    """Per-universe histograms of a variable, for each systematic dial and
    each event type, plus a total over all types under ``"All"``."""

    def __init__(
        self, edges: Sequence[float], title: str = "", types: Iterable[str] = ()
    ) -> None:
        self.edges = np.asarray(edges, dtype=float)
        if self.edges.ndim != 1 or self.edges.size < 2:
            raise ValueError("Require at least 2 bin boundaries")
        self.title = title
        self.types = tuple(dict.fromkeys(types))
        if ALL in self.types:
            raise ValueError(f"'{ALL}' is reserved for the total over event types")
        # dial name -> event type (or "All") -> one histogram per universe
        self.histograms: dict[str, dict[str, list[Histogram1D]]] = {}
        self.systypes: dict[str, SysType] = {}

    def add_systematic(self, systype: SysType | int, universes: int, name: str) -> None:
        """Create the universe histograms for dial ``name``.

        Unisims always get one (single) or two (dual) universes.
        """
        systype = SysType(systype)
        count = _FIXED_UNIVERSES.get(systype, universes)
        if count < 1:
            raise ValueError("A systematic needs at least one universe")
        self.histograms[name] = {
            kind: [Histogram1D(self.edges, self.title) for _ in range(count)]
            for kind in (*self.types, ALL)
        }
        self.systypes[name] = systype

    def fill(
        self,
        event_type: str | Sequence[str],
        variable: float,
        name: str,
        universe: int,
        weight: float,
    ) -> None:
        """Fill one universe with an event of the given type(s).

        ``event_type`` is a type name or several names for the same event
        (e.g. its two category labels); the first decides whether it is
        filled.  Data events, non-finite weights and unknown dials or types
        are skipped.
        """
        kinds = (event_type,) if isinstance(event_type, str) else tuple(event_type)
        if not kinds or kinds[0] == "Data":
            return
        if not math.isfinite(weight):
            return
        per_type = self.histograms.get(name)
        if per_type is None or kinds[0] not in per_type:
            return
        for kind in dict.fromkeys(kinds):
            if kind in per_type and kind != ALL:
                per_type[kind][universe].fill(variable, weight)
        per_type[ALL][universe].fill(variable, weight)

    def fill_all(
        self,
        event_type: str | Sequence[str],
        variable: float,
        name: str,
        weights: Iterable[float],
    ) -> None:
        """Fill every universe, one weight per universe."""
        for universe, weight in enumerate(weights):
            self.fill(event_type, variable, name, universe, weight)

    def covariance_matrix(
        self,
        name: str,
        central: Histogram1D | Sequence[float],
        event_type: str = ALL,
    ) -> tuple[np.ndarray, np.ndarray]:
        """Covariance and fractional covariance for dial ``name``."""
        try:
            universes = self.histograms[name][event_type]
        except KeyError:
            raise KeyError(
                f"Can't find systematic name={name} type={event_type}"
            ) from None
        return covariance(universes, central, self.systypes[name])

    def width_scale(self) -> None:
        """Divide every bin content and error by its bin width."""
        widths = np.diff(self.edges)
        for per_type in self.histograms.values():
            for hists in per_type.values():
                for hist in hists:
                    hist.values[1:-1] /= widths
                    hist.sumw2[1:-1] /= widths * widths