# hypsel

Tools for running a hyperon event selection and summarising its results:
particle records, weighted histograms, cut-flow tallies, systematic
covariance matrices, forward folding, and the standard comparison plots.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Overview

- `hypsel.particles`: `SimParticle` and `RecoParticle` dataclasses.
  `SimParticle.set_kinematics` fills momentum, kinetic energy and angles from
  a four-momentum `(px, py, pz, E)` and a mass; `set_positions` fills start,
  end and distance travelled. `RecoParticle.set_vertex` and
  `set_track_positions` fill positions. Both have `describe()` for a short
  text summary.
- `hypsel.histogram`: `Histogram1D` and `Histogram2D`, weighted histograms
  with under/overflow bins (bins numbered from 1) and summed squared weights
  for errors. `Histogram1D.uniform` builds equal-width bins.
- `hypsel.folding`: `ForwardFolder`, which builds a response matrix and a
  reco-space efficiency from generated and selected events, folds a true
  differential cross section, derives the measured one, and saves
  everything with `write()` to `<label>_ResponseMatrices.npz`.
- `hypsel.dialweights`: `GenG4WeightHandler`, which holds per-truth dial
  weights for an event (unphysical values replaced by 1), gives the
  central-value weight with `cv_weight()` and per-universe weights with
  `weights_for(dial_name)`.
- `hypsel.comparison`: `chi2`, `make_error_band`, `hist_max`,
  `hist_max_with_error` and `matrix_histogram`.
- `hypsel.cutflow`: `CutFlow` and `CutTally` for weighted cut-by-cut event
  counts with variances; `CUT_NAMES` lists the standard cuts.
- `hypsel.systematics`: `SysType`, `covariance` and `SystematicHistograms`
  for multisim, single-unisim and dual-unisim variations.
- `hypsel.labels`: `BeamMode`, exposure labels (`pot_label`), watermark text
  (`watermark_text`, switched with `set_watermark`), `legend_columns` and
  `matrix_cell_text`.
- `hypsel.plotting`: `draw_histogram` (stacked prediction, error band,
  optional data and a data/prediction ratio plot) and `draw_histogram_sys`
  (universes overlaid on the central value).
- `hypsel.matrix_plots`: `draw_matrix` and `draw_systematic_breakdown`.
- `hypsel.categories`: `CategoryHistograms`, histograms split by event type,
  a second type labelling and process, with scaling, width scaling, drawing
  and saving to `<label>_Histograms.npz`.
- `hypsel.selection`: `Selection`, `SelectionEvent` and `Generator`: sample
  POT weighting, the signal definition, and the fiducial-volume, track and
  shower cuts, tallied through a `CutFlow`.

Plots are written with matplotlib as PNG and PDF files; the drawing
functions return the paths they wrote.

## Example

```python
from hypsel.cutflow import CutFlow

flow = CutFlow(["FV", "Tracks", "Showers"])
flow.add_event(weight=0.5, is_signal=True, good_reco=False)
flow.update("FV", weight=0.5, is_signal=True, good_reco=False, passed=True)
print(flow.get("FV"))
```

```python
from hypsel.histogram import Histogram1D
from hypsel.comparison import chi2

pred = Histogram1D.uniform(3, 0.0, 3.0, "Prediction")
data = Histogram1D.uniform(3, 0.0, 3.0, "Data")
for x in (0.5, 1.5, 1.5, 2.5):
    pred.fill(x, 1.0)
    data.fill(x, 1.0)
print(chi2(pred, data, None, ()))
```

## What it does not do

- It does not read event files. Events are built by the caller as
  `SelectionEvent` objects.
- `Selection` implements only the fiducial-volume, track-count and shower
  cuts. Muon identification, decay-track selection, the BDT cuts,
  connectedness, invariant-mass and angle cuts are not provided, though
  their names are counted in `CUT_NAMES`.
- Flux weights are not computed: `Selection.add_event` takes a flux weight
  from the caller, and a fiducial volume is passed in as a function.
- There is no efficiency plot and no command-line program; everything is
  used as a library.