"""Generator and Geant4 reweighting dials attached to each event."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from enum import IntEnum

logger = logging.getLogger(__name__)

GENIE_MULTISIM_UNIVERSES = 600
G4_MULTISIM_UNIVERSES = 1000

# Weights above this are treated as unphysical and replaced by 1.
MAX_WEIGHT = 100.0


class GenUnisim(IntEnum):
    AX_FF_CCQE_SHAPE = 0  # z expansion of axial form factor
    DECAY_ANG_MEC = 1  # non-isotropic MEC decay
    NORM_CC_COH = 2  # 2x CCCOH xsec
    NORM_NC_COH = 3  # 2x NCCOH xsec
    THETA_DELTA_2N_RAD = 4  # non-isotropic Delta radiative decay
    THETA_DELTA_2N_PI = 5  # non-isotropic Delta hadronic decay
    VEC_FF_CCQE_SHAPE = 6  # dipole FF for CCQE
    XSEC_SHAPE_CC_MEC = 7  # Valencia MEC
    RPA_CCQE_UP = 8  # CCQE RPA +1 sigma
    RPA_CCQE_DOWN = 9  # CCQE RPA -1 sigma


# The two RPA variations share one dial.
GEN_UNISIM_DIALS = (
    "CCQE Axial FF Shape", "MEC Decay Angle", "CCCOH Norm", "NCCOH Norm",
    "DeltaRad Angle", "DeltaHad Angle", "CCQE Dipole", "Valencia MEC", "CCQE RPA",
)
GEN_UNISIM_NAMES = (
    "AxFFCCQEshape_UBGenie", "DecayAngMEC_UBGenie", "NormCCCOH_UBGenie",
    "NormNCCOH_UBGenie", "ThetaDelta2NRad_UBGenie", "Theta_Delta2Npi_UBGenie",
    "VecFFCCQEshape_UBGenie", "XSecShape_CCMEC_UBGenie", "RPA_CCQE_UBGenie",
)


class G4Multisim(IntEnum):
    PROTON = 0
    PI_PLUS = 1
    PI_MINUS = 2
    NEUTRON = 3
    LAMBDA = 4


G4_MULTISIM_DIALS = (
    "Proton Reinteractions", "PiPlus Reinteractions", "PiMinus Reinteractions",
    "Neutron Reinteractions", "Lambda Reinteractions",
)
G4_MULTISIM_NAMES = (
    "reinteractions_proton_Geant4", "reinteractions_piplus_Geant4",
    "reinteractions_piminus_Geant4", "reinteractions_neutron_Geant4",
    "reinteractions_Lambda_Geant4",
)

_CV_DIALS = (
    "TunedCentralValue_UBGenie",
    "splines_general_Spline",
    "RootinoFix_UBGenie",
)


def _sanitize(weight: float) -> float:
    """Replace infinite, NaN or oversized weights by 1."""
    if math.isinf(weight) or math.isnan(weight) or weight > MAX_WEIGHT:
        return 1.0
    return weight


class GenG4WeightHandler:
    """Holds one event's dial weights, one map of dial name to universe
    weights per MC truth."""

    def __init__(self) -> None:
        self._weight_maps: list[dict[str, list[float]]] = []

    @property
    def n_truths(self) -> int:
        return len(self._weight_maps)

    def load_event(
        self,
        dials: Sequence[str],
        weights: Iterable[Sequence[Sequence[float]]],
    ) -> None:
        """Load dial names and weights indexed [truth][dial][universe].

        The caller's weights are not modified; unphysical values are replaced
        by 1 in the handler's own copy.
        """
        dials = list(dials)
        maps: list[dict[str, list[float]]] = []
        for i_truth, truth in enumerate(weights):
            truth = list(truth)
            if len(truth) < len(dials):
                raise ValueError(
                    f"Truth {i_truth} has weights for {len(truth)} dials, "
                    f"expected {len(dials)}"
                )
            maps.append(
                {
                    dial: [_sanitize(float(w)) for w in universes]
                    for dial, universes in zip(dials, truth)
                }
            )
        self._weight_maps = maps

    def cv_weight(self) -> float:
        """Product over truths of the three central-value weights.

        Returns 1 if any truth lacks a central-value dial or has one with
        other than exactly one universe.
        """
        weight = 1.0
        for weight_map in self._weight_maps:
            try:
                vectors = [weight_map[dial] for dial in _CV_DIALS]
            except KeyError:
                return 1.0
            if any(len(v) != 1 for v in vectors):
                logger.warning("Found CV weight vectors with size != 1")
                return 1.0
            weight *= _sanitize(math.prod(v[0] for v in vectors))
        return weight

    def weights_for(self, dial_name: str) -> list[float]:
        """Per-universe weights for a dial, multiplied over truths.

        Returns an empty list when there are no weights, the dial is unknown
        or the truths disagree on the number of universes.
        """
        if not self._weight_maps:
            logger.warning("No weights, returning empty list")
            return []
        first = self._weight_maps[0].get(dial_name)
        if first is None:
            logger.warning("Weights with label %s not found", dial_name)
            return []
        result = [1.0] * len(first)
        for weight_map in self._weight_maps:
            vector = weight_map.get(dial_name)
            if vector is None or len(vector) != len(result):
                logger.warning("Weight vector size mismatch for dial %s", dial_name)
                return []
            result = [a * b for a, b in zip(result, vector)]
        return result