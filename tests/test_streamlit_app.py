"""Tests for the Streamlit front end entry point."""
from __future__ import annotations

from pathlib import Path

import pytest
from smart_structure.models import Session
from smart_structure.storage import MemoryBackend
from streamlit.testing.v1 import AppTest


APP_ROOT = Path(__file__).resolve().parents[1]
STREAMLIT_APP_PATH = APP_ROOT / "streamlit_app.py"


@pytest.fixture(autouse=True)
def isolated_state(tmp_path, monkeypatch):
    monkeypatch.setenv("SMART_STRUCTURE_STATE_PATH", str(tmp_path / "session.json"))
    monkeypatch.setenv("SMART_STRUCTURE_API_URL", "http://127.0.0.1:9/api/v1")


def test_streamlit_app_renders_without_exceptions() -> None:
    """Ensure the Streamlit app can be executed without runtime errors."""

    app_test = AppTest.from_file(str(STREAMLIT_APP_PATH))
    app_test.run(timeout=20)

    assert not app_test.exception, f"Streamlit app raised {app_test.exception!r}"
    assert len(app_test.main) > 0, "Streamlit app did not render any elements."


def test_logged_out_user_sees_login_form() -> None:
    app_test = AppTest.from_file(str(STREAMLIT_APP_PATH))
    app_test.run(timeout=20)

    assert app_test.header[0].value == "Login / Register"
    labels = [field.label for field in app_test.text_input]
    assert labels == ["Email", "Password"]


def test_logged_out_navigation_redirects_once() -> None:
    app_test = AppTest.from_file(str(STREAMLIT_APP_PATH))
    app_test.run(timeout=20)
    app_test.sidebar.radio[0].set_value("survey").run(timeout=20)

    assert not app_test.exception
    assert app_test.sidebar.radio[0].value == "auth"
    assert app_test.header[0].value == "Login / Register"
    messages = [n.message for n in app_test.session_state["workflow"].notifier.history()]
    assert messages.count("Please login first to access this section") == 1


def test_browser_sessions_do_not_share_a_login(monkeypatch) -> None:
    monkeypatch.delenv("SMART_STRUCTURE_STATE_PATH")
    first = AppTest.from_file(str(STREAMLIT_APP_PATH))
    first.run(timeout=20)
    first.session_state["workflow"].store.save(
        Session(access_token="tok", user={"id": "u1", "name": "Asha"})
    )

    second = AppTest.from_file(str(STREAMLIT_APP_PATH))
    second.run(timeout=20)

    workflow = second.session_state["workflow"]
    assert isinstance(workflow.store.backend, MemoryBackend)
    assert workflow.store.load() is None
    assert not workflow.state.is_authenticated
