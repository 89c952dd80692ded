"""Text shown on plots: watermarks, exposure labels and matrix cell values."""

from __future__ import annotations

import math
from collections.abc import Sequence
from enum import IntEnum

SIMULATION_WATERMARK = "MicroBooNE Simulation, Preliminary"

_draw_watermark = True


class BeamMode(IntEnum):
    """Beam configuration a sample was taken in."""

    FHC = 0
    RHC = 1
    BNB = 2


_BEAM_NAMES = {
    BeamMode.FHC: "NuMI FHC",
    BeamMode.RHC: "NuMI RHC",
    BeamMode.BNB: "BNB",
}


def set_watermark(enabled: bool = True) -> None:
    """Switch the experiment watermark on or off for all later plots."""
    global _draw_watermark
    _draw_watermark = bool(enabled)


def pot_label(mode: BeamMode | int, pot: float) -> str:
    """Exposure label such as ``NuMI FHC, 1.5 #times 10^{20} POT``."""
    name = _BEAM_NAMES[BeamMode(mode)]
    return f"{name}, {pot / 1e20:.1f} #times 10^{{20}} POT"


def watermark_text(has_data: bool, runs: Sequence[int] = ()) -> str | None:
    """Watermark for a plot, or None when watermarks are switched off.

    Simulation-only plots get the simulation watermark; plots with data
    name their one or two running periods.
    """
    if not has_data:
        text = SIMULATION_WATERMARK
    elif len(runs) == 1:
        text = f"MicroBooNE Run {runs[0]}, Preliminary"
    elif len(runs) == 2:
        text = f"MicroBooNE Runs {runs[0]} + {runs[1]}, Preliminary"
    else:
        raise ValueError("Currently maximum of two running periods supported")
    return text if _draw_watermark else None


def legend_columns(n: int) -> int:
    """Number of legend columns for ``n`` entries."""
    if n > 12:
        return 5
    if n > 6:
        return 4
    if n > 4:
        return 3
    return 2


def _round_sig(value: float, sig: int) -> float:
    if value == 0 or not math.isfinite(value):
        return value
    return float(f"{value:.{sig}g}")


def matrix_cell_text(value: float) -> str:
    """Text written on a matrix cell: the value to 3 significant figures,
    in scientific form when very small or very large."""
    content = _round_sig(value, 3)
    if abs(content) < 1e-10:
        return "0"
    if abs(content) < 1e-4 or abs(content) > 1e4:
        order = math.floor(math.log10(abs(content)))
        return f"{content * 10.0 ** -order:.2f} #times 10^{{{order}}}"
    return f"{content:f}"