"""Event selection: sample bookkeeping, signal definition and the first cuts."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import IntEnum

from hypsel.cutflow import CUT_NAMES, CutFlow, CutTally
from hypsel.dialweights import GenG4WeightHandler
from hypsel.labels import BeamMode
from hypsel.particles import RecoParticle, SimParticle

logger = logging.getLogger(__name__)

Vertex = Sequence[float]

SAMPLE_TYPES = ("Hyperon", "Background", "Dirt", "EXT", "Data")

_PROTON_PDG = 2212
_PIMINUS_PDG = -211
_HYPERON_DECAY_ORIGIN = 2
_MIN_PROTON_MOMENTUM = 0.3
_MIN_PION_MOMENTUM = 0.1


class Generator(IntEnum):
    """Event generator that produced a simulated sample."""

    GENIE = 0
    NUWRO = 1


@dataclass
class SelectionEvent:
    """The parts of an event the selection reads and updates."""

    run: int = 0
    subrun: int = 0
    event: int = 0
    weight: float = 1.0
    mode: list[str] = field(default_factory=list)

    n_mc_truths: int = 0
    in_active_tpc: list[bool] = field(default_factory=list)
    is_signal: list[bool] = field(default_factory=list)
    is_signal_sigma_zero: list[bool] = field(default_factory=list)
    true_primary_vertex: list[Vertex] = field(default_factory=list)
    decay: list[SimParticle] = field(default_factory=list)
    event_has_neutron_scatter: bool = False
    event_has_hyperon: bool = False

    reco_primary_vertex: Vertex = (0.0, 0.0, 0.0)
    n_primary_track_daughters: int = 0
    n_primary_shower_daughters: int = 0
    tracklike_primary_daughters: list[RecoParticle] = field(default_factory=list)

    sys_dials: list[str] = field(default_factory=list)
    sys_weights: list[list[list[float]]] = field(default_factory=list)

    # Set by the selection
    event_is_signal: bool = False
    event_is_signal_sigma_zero: bool = False
    good_reco: bool = False
    true_decay_proton_index: int = -1
    true_decay_pion_index: int = -1


class Selection:
    """Scales events from several samples to a common exposure, applies the
    signal definition and tallies events through the selection cuts."""

    def __init__(
        self,
        pot: float,
        fiducial: Callable[[Vertex], bool],
        use_flux_weight: bool = True,
        use_gen_weight: bool = True,
    ) -> None:
        self.pot = pot
        self.fiducial = fiducial
        self.use_flux_weight = use_flux_weight
        self.use_gen_weight = use_gen_weight
        self.beam_mode = BeamMode.FHC
        self.run = 1
        self.has_data = False
        self.sample_name = ""
        self.sample_type = ""
        self.sample_weight = 1.0
        self.sample_generator: Generator | None = None
        self._cuts = CutFlow(CUT_NAMES)
        self._gen_weights = GenG4WeightHandler()

    def set_beam_mode(self, mode: BeamMode | int) -> None:
        self.beam_mode = BeamMode(mode)

    def add_sample(self, name: str, sample_type: str, sample_pot: float) -> None:
        """Start processing a sample; its events are scaled to the target POT."""
        logger.info(
            "Processing Sample %s of type %s and POT %g", name, sample_type, sample_pot
        )
        if sample_type != "Data":
            if not sample_pot > 0:
                raise ValueError(f"Sample {name} must have positive POT")
            self.sample_weight = self.pot / sample_pot
        else:
            self.sample_weight = 1.0

        self.sample_name = name
        self.sample_type = sample_type

        if sample_type not in ("Data", "EXT"):
            if "GENIE" in name:
                self.sample_generator = Generator.GENIE
            elif "NuWro" in name:
                self.sample_generator = Generator.NUWRO
            else:
                self.sample_generator = None

        if sample_type == "Data":
            self.has_data = True

    def add_event(
        self,
        event: SelectionEvent,
        flux_weight: float = 1.0,
        gen_weight: float | None = None,
    ) -> bool:
        """Normalise the event's weight and count it in every cut's totals.

        Events that belong to another sample (neutron scatters outside the
        neutron sample, hyperons outside the hyperon sample) get weight 0 and
        are not counted; False is returned for them.  When ``gen_weight`` is
        None the central-value weight is taken from the event's dials.
        """
        kind = self.sample_type
        if (kind == "Neutron") != event.event_has_neutron_scatter:
            event.weight = 0.0
            return False
        if (kind == "Hyperon") != event.event_has_hyperon:
            event.weight = 0.0
            return False

        if kind not in ("Data", "EXT"):
            if self.use_flux_weight:
                event.weight *= flux_weight
            if self.use_gen_weight:
                if gen_weight is None:
                    self._gen_weights.load_event(event.sys_dials, event.sys_weights)
                    gen_weight = self._gen_weights.cv_weight()
                event.weight *= gen_weight

        if kind != "Data":
            event.weight *= self.sample_weight

        self._cuts.add_event(event.weight, event.event_is_signal, event.good_reco)
        return True

    def set_signal(self, event: SelectionEvent) -> None:
        """Apply the signal definition and check the decay tracks were reconstructed."""
        event.event_is_signal = False
        event.event_is_signal_sigma_zero = False
        event.good_reco = False

        is_signal = list(event.is_signal)
        is_signal_sz = list(event.is_signal_sigma_zero)

        for i_tr in range(event.n_mc_truths):
            is_signal[i_tr] = False
            is_signal_sz[i_tr] = False
            inside = bool(self.fiducial(event.true_primary_vertex[i_tr]))
            event.in_active_tpc[i_tr] = inside

            if not (event.is_signal[i_tr] or event.is_signal_sigma_zero[i_tr]):
                continue

            daughters = [d for d in event.decay if d.mc_truth_index == i_tr]
            found_proton = any(
                d.pdg == _PROTON_PDG and d.mod_momentum > _MIN_PROTON_MOMENTUM
                for d in daughters
            )
            found_pion = any(
                d.pdg == _PIMINUS_PDG and d.mod_momentum > _MIN_PION_MOMENTUM
                for d in daughters
            )
            decay_ok = found_proton and found_pion and inside
            is_signal[i_tr] = decay_ok and event.is_signal[i_tr]
            is_signal_sz[i_tr] = decay_ok and event.is_signal_sigma_zero[i_tr]

        event.is_signal = is_signal
        event.is_signal_sigma_zero = is_signal_sz
        event.event_is_signal = any(is_signal)
        event.event_is_signal_sigma_zero = any(is_signal_sz)

        if not event.event_is_signal:
            return

        found_proton = found_pion = False
        for i, track in enumerate(event.tracklike_primary_daughters):
            if not track.has_truth or track.track_true_origin != _HYPERON_DECAY_ORIGIN:
                continue
            if track.track_true_pdg == _PROTON_PDG:
                found_proton = True
                event.true_decay_proton_index = i
            if track.track_true_pdg == _PIMINUS_PDG:
                found_pion = True
                event.true_decay_pion_index = i

        event.good_reco = found_proton and found_pion

    def _update(self, event: SelectionEvent, passed: bool, name: str) -> bool:
        self._cuts.update(
            name, event.weight, event.event_is_signal, event.good_reco, passed
        )
        return passed

    def fiducial_volume_cut(self, event: SelectionEvent) -> bool:
        passed = bool(self.fiducial(event.reco_primary_vertex))
        return self._update(event, passed, "FV")

    def track_cut(self, event: SelectionEvent) -> bool:
        """Require at least three primary tracks."""
        return self._update(event, event.n_primary_track_daughters > 2, "Tracks")

    def shower_cut(self, event: SelectionEvent) -> bool:
        """Require no primary showers."""
        return self._update(event, event.n_primary_shower_daughters < 1, "Showers")

    def cut(self, name: str) -> CutTally:
        """Return a copy of the tally for cut ``name``."""
        return self._cuts.get(name)

    def reset(self) -> None:
        self._cuts.reset()