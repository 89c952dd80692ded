"""Bookkeeping of weighted event counts through the selection cuts."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

CUT_NAMES = (
    "FV",
    "Tracks",
    "Showers",
    "MuonID",
    "SubleadingTracks",
    "DecaySelector",
    "DecayAnalysis",
    "Connectedness",
    "InvariantMass",
    "AlphaAngle",
)


@dataclass
class CutTally:
    """Weighted counts (and summed squared weights) for one cut."""

    name: str = ""

    total_events: float = 0.0
    signal_events: float = 0.0
    good_reco_events: float = 0.0
    total_events_var: float = 0.0
    signal_events_var: float = 0.0
    good_reco_events_var: float = 0.0

    events_in: float = 0.0
    signal_events_in: float = 0.0
    good_reco_events_in: float = 0.0
    events_in_var: float = 0.0
    signal_events_in_var: float = 0.0
    good_reco_events_in_var: float = 0.0

    events_out: float = 0.0
    signal_events_out: float = 0.0
    good_reco_events_out: float = 0.0
    events_out_var: float = 0.0
    signal_events_out_var: float = 0.0
    good_reco_events_out_var: float = 0.0

    def reset(self) -> None:
        """Zero every count, keeping the name."""
        for field in dataclasses.fields(self):
            if field.name != "name":
                setattr(self, field.name, 0.0)


class CutFlow:
    """Tallies for an ordered list of named cuts."""

    def __init__(self, names: Iterable[str] = CUT_NAMES) -> None:
        self._cuts = [CutTally(name=name) for name in names]

    @property
    def names(self) -> list[str]:
        return [cut.name for cut in self._cuts]

    def __iter__(self) -> Iterator[CutTally]:
        return (dataclasses.replace(cut) for cut in self._cuts)

    def __len__(self) -> int:
        return len(self._cuts)

    def add_event(self, weight: float, is_signal: bool, good_reco: bool) -> None:
        """Count an event entering the selection in every cut's totals."""
        w2 = weight * weight
        for cut in self._cuts:
            cut.total_events += weight
            cut.total_events_var += w2
            if is_signal:
                cut.signal_events += weight
                cut.signal_events_var += w2
            if good_reco:
                cut.good_reco_events += weight
                cut.good_reco_events_var += w2

    def update(
        self,
        name: str,
        weight: float,
        is_signal: bool,
        good_reco: bool,
        passed: bool,
    ) -> None:
        """Record an event reaching cut ``name`` and whether it passed.

        Unknown names are ignored.
        """
        w2 = weight * weight
        for cut in self._cuts:
            if cut.name != name:
                continue
            cut.events_in += weight
            cut.events_in_var += w2
            if is_signal:
                cut.signal_events_in += weight
                cut.signal_events_in_var += w2
            if good_reco:
                cut.good_reco_events_in += weight
                cut.good_reco_events_in_var += w2
            if passed:
                cut.events_out += weight
                cut.events_out_var += w2
                if is_signal:
                    cut.signal_events_out += weight
                    cut.signal_events_out_var += w2
                if good_reco:
                    cut.good_reco_events_out += weight
                    cut.good_reco_events_out_var += w2

    def get(self, name: str) -> CutTally:
        """Return a copy of the tally for cut ``name``."""
        for cut in self._cuts:
            if cut.name == name:
                return dataclasses.replace(cut)
        raise KeyError(f"Cut {name} not found")

    def reset(self) -> None:
        for cut in self._cuts:
            cut.reset()