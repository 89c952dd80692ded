"""Truth-level and reconstructed particle records."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

# Conversion used for the truth angles; it keeps the rounded value of pi.
_DEGREES_PER_RADIAN = 180 / 3.1416


def _safe_ratio(numerator: float, denominator: float) -> float:
    """Return numerator/denominator, or NaN where the ratio is undefined."""
    if denominator == 0:
        return math.nan
    return numerator / denominator


@dataclass
class SimParticle:
    """A simulated particle and its truth kinematics."""

    mc_truth_index: int = -1
    pdg: int = 0
    e: float = 0.0
    px: float = 0.0
    py: float = 0.0
    pz: float = 0.0
    mod_momentum: float = 0.0
    ke: float = 0.0
    start_x: float = 0.0
    start_y: float = 0.0
    start_z: float = 0.0
    end_x: float = 0.0
    end_y: float = 0.0
    end_z: float = 0.0
    travel: float = 0.0
    theta: float = 0.0
    phi: float = 0.0
    # 0 neutrino, 1 primary, 2 hyperon decay, 3 other, 4 kaon decay, 5 sigma0 decay
    origin: int = 0

    def set_kinematics(self, p: Sequence[float], mass: float) -> None:
        """Set momentum, kinetic energy and angles from a four-momentum (px, py, pz, E)."""
        px, py, pz, energy = (float(c) for c in p)
        self.e = energy
        self.px, self.py, self.pz = px, py, pz
        self.mod_momentum = math.sqrt(px * px + py * py + pz * pz)
        self.ke = energy - mass

        cos_theta = _safe_ratio(pz, self.mod_momentum)
        sin_phi = _safe_ratio(py, math.sqrt(px * px + py * py))
        self.theta = (
            math.nan if math.isnan(cos_theta)
            else _DEGREES_PER_RADIAN * math.acos(max(-1.0, min(1.0, cos_theta)))
        )
        self.phi = (
            math.nan if math.isnan(sin_phi)
            else _DEGREES_PER_RADIAN * math.asin(max(-1.0, min(1.0, sin_phi)))
        )

    def set_positions(self, start: Sequence[float], end: Sequence[float]) -> None:
        """Set start and end points and the distance travelled between them."""
        self.start_x, self.start_y, self.start_z = (float(c) for c in start[:3])
        self.end_x, self.end_y, self.end_z = (float(c) for c in end[:3])
        self.travel = math.dist(
            (self.start_x, self.start_y, self.start_z),
            (self.end_x, self.end_y, self.end_z),
        )

    def describe(self) -> str:
        """Return a short human-readable summary."""
        return (
            f"PDG: {self.pdg}  Origin: {self.origin}\n"
            f"Length: {self.travel:g}  KE: {self.ke:g}"
        )


@dataclass
class RecoParticle:
    """A reconstructed track or shower with its matched truth information."""

    index: int = 0

    # General reconstruction info
    pdg: int = 0
    track_shower_score: float = 0.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    displacement: float = 0.0

    # Track variables
    track_length: float = 0.0
    track_direction_x: float = 0.0
    track_direction_y: float = 0.0
    track_direction_z: float = 0.0
    track_start_x: float = 0.0
    track_start_y: float = 0.0
    track_start_z: float = 0.0
    track_end_x: float = 0.0
    track_end_y: float = 0.0
    track_end_z: float = 0.0
    track_pid: float = 0.0
    mean_dedx_plane0: float = 0.0
    mean_dedx_plane1: float = 0.0
    mean_dedx_plane2: float = 0.0
    mean_dedx_three_plane: float = 0.0
    track_llr_pid: float = 0.0
    proton_momentum: float = 0.0
    muon_momentum: float = 0.0

    # Truth info
    has_truth: bool = False
    mc_truth_index: int = -1
    track_true_pdg: int = 0
    track_true_e: float = 0.0
    track_true_px: float = 0.0
    track_true_py: float = 0.0
    track_true_pz: float = 0.0
    track_true_mod_momentum: float = 0.0
    track_true_ke: float = 0.0
    track_true_length: float = 0.0
    # 1 primary, 2 hyperon decay, 3 other, 4 kaon decay, 5 sigma0 decay
    track_true_origin: int = 0
    track_truth_purity: float = 0.0

    def set_vertex(self, v: Sequence[float]) -> None:
        """Set the particle's reconstructed position."""
        self.x, self.y, self.z = (float(c) for c in v[:3])

    def set_track_positions(self, start: Sequence[float], end: Sequence[float]) -> None:
        """Set the track's start and end points."""
        self.track_start_x, self.track_start_y, self.track_start_z = (
            float(c) for c in start[:3]
        )
        self.track_end_x, self.track_end_y, self.track_end_z = (
            float(c) for c in end[:3]
        )

    def describe(self) -> str:
        """Return a short human-readable summary."""
        return (
            "Reco Info:\n"
            f"PDG Code: {self.pdg}  Track/Shower score: {self.track_shower_score:g}\n"
            f"Track length: {self.track_length:g}  PID score: {self.track_pid:g}\n"
            "Truth Info:\n"
            f"PDG: {self.track_true_pdg}  Origin: {self.track_true_origin}\n"
            f"Length: {self.track_true_length:g}  KE: {self.track_true_ke:g}"
        )