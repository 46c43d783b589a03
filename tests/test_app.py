import json

import pytest
from streamlit.testing.v1 import AppTest

from config import AUTOSAVE_ENV, STATE_FILE_ENV
from tab_approximate import FUNC_INPUT_KEY, PRESET_KEY


@pytest.fixture
def state_file(tmp_path, monkeypatch):
    path = tmp_path / "fourier_state.json"
    monkeypatch.setenv(STATE_FILE_ENV, str(path))
    monkeypatch.delenv(AUTOSAVE_ENV, raising=False)
    return path


@pytest.fixture
def app(state_file):
    at = AppTest.from_file("../app.py", default_timeout=60)
    at.run()
    assert not at.exception
    return at


def test_preset_follows_expression_edits(app) -> None:
    assert app.selectbox(key=PRESET_KEY).value == "Parabola x²"

    app.selectbox(key=PRESET_KEY).set_value("Sawtooth x").run()
    assert app.text_input(key=FUNC_INPUT_KEY).value == "x"
    assert app.selectbox(key=PRESET_KEY).value == "Sawtooth x"

    app.text_input(key=FUNC_INPUT_KEY).input("x^3").run()
    assert not app.exception
    assert app.selectbox(key=PRESET_KEY).value == "Custom"


def test_edits_are_saved_automatically(app, state_file) -> None:
    app.text_input(key=FUNC_INPUT_KEY).input("abs(x)").run()
    assert not app.exception

    assert json.loads(state_file.read_text())["function_text"] == "abs(x)"


def test_huge_expression_does_not_freeze_the_page(app) -> None:
    app.text_input(key=FUNC_INPUT_KEY).input("9^9^9^9").run()
    assert not app.exception
    assert app.session_state["expression_error"]
    assert any("Invalid expression" in w.value for w in app.warning)
