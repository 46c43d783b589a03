import json
import math
import time

import numpy as np
import pytest

from approximation import ApproximationState, format_error
from coefficients import COS, SIN


@pytest.fixture
def state():
    return ApproximationState.default()


def test_default_state(state) -> None:
    assert state.function_text == "x^2"
    assert state.target()(2.0) == pytest.approx(4.0)
    assert len(state.cos_coeffs) == 0
    assert len(state.sin_coeffs) == 0
    assert state.l2_error == 0.0


def test_bad_expression_keeps_previous_samples(state) -> None:
    before = state.tick().target_points

    assert not state.commit_expression("x^^")

    after = state.tick().target_points
    np.testing.assert_array_equal(before, after)
    np.testing.assert_allclose(after[:, 1], after[:, 0] ** 2)
    assert state.function_text == "x^2"


def test_good_expression_replaces_target(state) -> None:
    assert state.commit_expression("sin(x)")
    assert state.function_text == "sin(x)"
    assert state.target()(math.pi / 2) == pytest.approx(1.0)


def test_expression_with_other_variable_targets_zero(state) -> None:
    assert state.commit_expression("x + a")
    assert state.target()(3.0) == 0.0


def test_tick_without_coefficients(state) -> None:
    output = state.tick()
    assert output.target_points.shape == (500, 2)
    assert output.approx_points.shape == (500, 2)
    assert output.target_points[0, 0] == pytest.approx(-10.0)
    assert output.target_points[-1, 0] == pytest.approx(10.0)
    np.testing.assert_array_equal(output.approx_points[:, 1], 0.0)
    assert output.l2_error == pytest.approx(math.sqrt(2 * math.pi ** 5 / 5), rel=1e-9)
    assert state.l2_error == output.l2_error


def test_exact_match_gives_zero_error(state) -> None:
    state.commit_expression("1 + 2sin(x)")
    state.cos_coeffs.append()
    state.cos_coeffs.set_value(0, 1.0)
    state.sin_coeffs.append()
    state.sin_coeffs.set_value(0, 2.0)

    assert state.recompute_error() == pytest.approx(0.0, abs=1e-10)


def test_tick_reports_coefficient_views(state) -> None:
    state.cos_coeffs.append()
    state.cos_coeffs.append()
    state.sin_coeffs.append()
    output = state.tick()

    assert [v.label for v in output.cos_coefficients] == ["A0", "A1"]
    assert [v.label for v in output.sin_coefficients] == ["B1"]
    view = output.sin_coefficients[0]
    assert (view.value, view.min, view.max) == (0.0, -10.0, 10.0)
    assert view.step == pytest.approx(0.2)


def test_tick_commits_pending_bound_text(state) -> None:
    state.sin_coeffs.append()
    state.sin_coeffs.set_bound_text(0, "max", "3")
    state.sin_coeffs.set_bound_text(0, "min", "abc")

    output = state.tick()

    view = output.sin_coefficients[0]
    assert view.max == 3.0
    assert view.min == -10.0
    assert view.min_text == "abc"


def test_coefficients_lookup(state) -> None:
    assert state.coefficients(COS) is state.cos_coeffs
    assert state.coefficients(SIN) is state.sin_coeffs
    with pytest.raises(ValueError):
        state.coefficients("tan")


def test_nan_error_is_kept(state) -> None:
    state.commit_expression("log(x - 20)")
    output = state.tick()
    assert math.isnan(output.l2_error)
    assert output.l2_error_text == "nan"


def test_format_error() -> None:
    assert format_error(0.5) == "0.50000000"
    assert format_error(float('nan')) == "nan"
    assert format_error(float('inf')) == "inf"


def test_save_and_load(tmp_path, state) -> None:
    state.commit_expression("abs(x)")
    state.cos_coeffs.append()
    state.cos_coeffs.set_value(0, 1.5)
    state.cos_coeffs.set_bound_text(0, "max", "2.5")
    state.cos_coeffs.commit_bound_text(0, "max")
    state.sin_coeffs.append()
    state.recompute_error()

    path = tmp_path / "state.json"
    assert state.save(path)

    data = json.loads(path.read_text())
    assert data["function_text"] == "abs(x)"
    assert data["cos"] == {"values": [1.5], "minima": [-10.0], "maxima": [2.5]}

    restored = ApproximationState.load(path)
    assert restored.function_text == "abs(x)"
    assert restored.cos_coeffs.values() == [1.5]
    assert restored.cos_coeffs[0].max_text == "2.5"
    assert restored.sin_coeffs[0].min_text == "-10"
    assert restored.l2_error == pytest.approx(state.l2_error)


def test_load_missing_file_gives_default(tmp_path) -> None:
    restored = ApproximationState.load(tmp_path / "missing.json")
    assert restored.function_text == "x^2"


def test_load_corrupt_file_gives_default(tmp_path) -> None:
    path = tmp_path / "state.json"
    path.write_text("{not json")
    restored = ApproximationState.load(path)
    assert restored.function_text == "x^2"


def test_stored_expression_that_no_longer_parses() -> None:
    restored = ApproximationState.from_dict({"function_text": "x^^"})
    assert restored.function_text == "x^2"
    assert len(restored.cos_coeffs) == 0


def test_save_to_unwritable_path(tmp_path, state) -> None:
    assert not state.save(tmp_path / "no_such_dir" / "state.json")


def test_huge_expression_keeps_previous_target(state) -> None:
    started = time.monotonic()
    assert not state.commit_expression("9^9^9^9")
    assert time.monotonic() - started < 5.0
    assert state.function_text == "x^2"
    assert state.target()(3.0) == pytest.approx(9.0)


def test_tick_with_invalid_and_huge_bound_texts(state) -> None:
    state.cos_coeffs.append()
    state.cos_coeffs.set_bound_text(0, "min", "abc")
    state.cos_coeffs.set_bound_text(0, "max", "9^9^9^9")

    started = time.monotonic()
    output = state.tick()
    output = state.tick()
    assert time.monotonic() - started < 10.0

    view = output.cos_coefficients[0]
    assert (view.min, view.max) == (-10.0, 10.0)
    assert (view.min_text, view.max_text) == ("abc", "9^9^9^9")


def _reject_constant(name):
    raise ValueError(f"non-standard JSON constant {name}")


def test_nan_error_is_saved_as_standard_json(tmp_path, state) -> None:
    state.commit_expression("log(x - 20)")
    state.tick()
    path = tmp_path / "state.json"
    assert state.save(path)

    data = json.loads(path.read_text(), parse_constant=_reject_constant)
    assert data["l2_error"] == "nan"
    assert math.isnan(ApproximationState.load(path).l2_error)


def test_save_overwrites_previous_file(tmp_path, state) -> None:
    path = tmp_path / "state.json"
    assert state.save(path)
    state.commit_expression("sin(x)")
    assert state.save(path)

    assert json.loads(path.read_text())["function_text"] == "sin(x)"
    assert [p.name for p in tmp_path.iterdir()] == ["state.json"]


def test_failed_save_keeps_previous_file(tmp_path, monkeypatch, state) -> None:
    path = tmp_path / "state.json"
    assert state.save(path)
    before = path.read_text()

    # Fails halfway through writing
    monkeypatch.setattr(state, "to_dict", lambda: {"function_text": object()})
    assert not state.save(path)

    assert path.read_text() == before
    assert [p.name for p in tmp_path.iterdir()] == ["state.json"]
