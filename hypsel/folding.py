"""Response matrices and forward folding of differential cross sections."""

from __future__ import annotations

from pathlib import Path

import numpy as np

from hypsel.histogram import Histogram1D, Histogram2D

# Overall normalisation applied to the measured cross section.
_NORMALISATION = 0.64


class ForwardFolder:
    """Builds a response matrix from generated and selected events and folds
    a true differential cross section into reconstructed space."""

    def __init__(
        self, label: str, axis_title: str, nbins: int, low: float, high: float
    ) -> None:
        self.label = label
        self.gen = Histogram1D.uniform(
            nbins, low, high, f"All Events;True {axis_title};Events"
        )
        self.reco = Histogram1D.uniform(
            nbins, low, high, f"Selected Events;Reco {axis_title};Events"
        )
        edges = self.gen.edges
        self.reco_gen = Histogram2D(
            edges, edges, f"Selected Events;Reco {axis_title};True {axis_title}"
        )
        self.response = Histogram2D(
            edges, edges, f"Response Matrix;Reco {axis_title};True {axis_title}"
        )
        self.efficiency = Histogram1D(edges, f"Efficiency;Reco {axis_title};Events")
        self.true_cross_section: Histogram1D | None = None
        self.folded_cross_section: Histogram1D | None = None
        self.reco_cross_section: Histogram1D | None = None
        self.flux = 0.0
        self.targets = 0.0

    @property
    def nbins(self) -> int:
        return self.gen.nbins

    def add_gen_event(self, true_var: float, weight: float = 1.0) -> None:
        self.gen.fill(true_var, weight)

    def add_reco_event(self, reco_var: float, true_var: float, weight: float = 1.0) -> None:
        self.reco.fill(reco_var, weight)
        self.reco_gen.fill(reco_var, true_var, weight)

    def response_matrix(self) -> Histogram2D:
        """Compute the response matrix and the efficiency in reco space."""
        gen = self.gen.bin_values
        counts = self.reco_gen.bin_values
        gen_row = np.broadcast_to(gen, counts.shape)
        response = np.divide(
            counts, gen_row, out=np.zeros_like(counts), where=gen_row > 0
        )
        self.response.values[1:-1, 1:-1] = response

        numerator = response @ self.reco.bin_values
        denominator = response @ gen
        self.efficiency.values[1:-1] = np.divide(
            numerator,
            denominator,
            out=np.zeros_like(numerator),
            where=denominator > 0,
        )
        return self.response

    def set_flux(self, flux: float) -> None:
        self.flux = flux

    def set_targets(self, targets: float) -> None:
        self.targets = targets

    def add_differential_cross_section(self, hist: Histogram1D) -> None:
        """Fold a true differential cross section and derive the measured one."""
        if hist.nbins != self.nbins:
            raise ValueError(
                f"Cross section has {hist.nbins} bins, expected {self.nbins}"
            )
        if self.flux == 0 or self.targets == 0:
            raise ValueError("Flux and number of targets must be set before folding")

        self.true_cross_section = hist.copy("True Differential Cross Section")

        folded = hist.copy("Forward Folded Differential Cross Section")
        folded.values[1:-1] = self.response.bin_values @ hist.bin_values
        self.folded_cross_section = folded

        measured = self.reco.copy("Measured Differential Cross Section")
        # The final bin keeps its raw reconstructed content.
        n = self.nbins
        reco = self.reco.values[1:n]
        eff = self.efficiency.values[1:n]
        widths = np.diff(self.reco.edges)[: n - 1]
        measured.values[1:n] = np.where(
            eff > 0,
            reco / self.targets / self.flux / widths / _NORMALISATION,
            0.0,
        )
        self.reco_cross_section = measured

    def write(self, directory: str | Path = ".") -> Path:
        """Save all distributions to ``<label>_ResponseMatrices.npz``."""
        if (
            self.true_cross_section is None
            or self.folded_cross_section is None
            or self.reco_cross_section is None
        ):
            raise RuntimeError("No differential cross section has been added")
        out_dir = Path(directory)
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / f"{self.label}_ResponseMatrices.npz"
        np.savez(
            path,
            edges=self.gen.edges,
            TrueDist=self.gen.bin_values,
            RecoDist=self.reco.bin_values,
            RecoVsTrueDist=self.reco_gen.bin_values,
            ResponseMatrix=self.response.bin_values,
            Efficiency=self.efficiency.bin_values,
            TrueDiffXsec=self.true_cross_section.bin_values,
            FoldedDiffXsec=self.folded_cross_section.bin_values,
            MeasuredDiffXsec=self.reco_cross_section.bin_values,
        )
        return path