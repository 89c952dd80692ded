"""Event selection bookkeeping, weighted histograms, systematic covariances,
forward folding and plotting for hyperon analyses."""

__version__ = "0.1.0"