import math

import pytest

from hypsel.dialweights import GenG4WeightHandler

CV = ["TunedCentralValue_UBGenie", "splines_general_Spline", "RootinoFix_UBGenie"]


def _handler(dials, weights):
    h = GenG4WeightHandler()
    h.load_event(dials, weights)
    return h


def test_empty_handler():
    h = GenG4WeightHandler()
    assert h.cv_weight() == 1.0
    assert h.weights_for("anything") == []


def test_cv_weight_is_product_over_dials_and_truths():
    a, b, c = 1.5, 2.0, 0.5
    d, e, f = 0.8, 1.2, 1.0
    h = _handler(CV, [[[a], [b], [c]], [[d], [e], [f]]])
    assert h.n_truths == 2
    assert h.cv_weight() == pytest.approx(a * b * c * d * e * f)


def test_cv_weight_missing_dial_gives_one():
    h = _handler(CV[:2], [[[2.0], [3.0]]])
    assert h.cv_weight() == 1.0


def test_cv_weight_wrong_size_gives_one():
    h = _handler(CV, [[[2.0, 3.0], [3.0], [1.0]]])
    assert h.cv_weight() == 1.0


def test_cv_product_too_large_is_replaced():
    h = _handler(CV, [[[20.0], [20.0], [1.0]]])
    assert h.cv_weight() == 1.0


def test_unphysical_weights_replaced():
    h = _handler(["dial"], [[[math.inf, math.nan, 150.0, 0.5]]])
    assert h.weights_for("dial") == [1.0, 1.0, 1.0, 0.5]


def test_weights_multiplied_over_truths():
    first, second = [0.5, 2.0], [3.0, 0.25]
    h = _handler(["dial"], [[first], [second]])
    result = h.weights_for("dial")
    assert result == pytest.approx([x * y for x, y in zip(first, second)])


def test_unknown_dial_and_size_mismatch():
    h = _handler(["dial"], [[[1.0, 2.0]], [[1.0]]])
    assert h.weights_for("other") == []
    assert h.weights_for("dial") == []


def test_duplicate_dial_uses_last_entry():
    h = _handler(["dial", "dial"], [[[0.5], [0.25]]])
    assert h.weights_for("dial") == [0.25]


def test_too_few_dial_entries_raises():
    h = GenG4WeightHandler()
    with pytest.raises(ValueError):
        h.load_event(["a", "b"], [[[1.0]]])


def test_load_does_not_modify_input():
    weights = [[[math.inf, 2.0]]]
    h = _handler(["dial"], weights)
    assert math.isinf(weights[0][0][0])
    assert h.weights_for("dial")[1] == weights[0][0][1]


def test_reload_replaces_previous_event():
    h = _handler(["dial"], [[[0.5]]])
    h.load_event(["other"], [[[0.75]]])
    assert h.weights_for("dial") == []
    assert h.weights_for("other") == [0.75]