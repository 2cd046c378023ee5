"""Tests for the Streamlit launcher script."""

from __future__ import annotations

import runpy
from pathlib import Path

import apps.quiz

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "quiz_app.py"


def test_import_does_not_render(monkeypatch):
    calls = []
    monkeypatch.setattr(apps.quiz, "render", lambda: calls.append("render"))

    runpy.run_path(str(SCRIPT), run_name="quiz_app")

    assert calls == []


def test_running_as_main_renders(monkeypatch):
    calls = []
    monkeypatch.setattr(apps.quiz, "render", lambda: calls.append("render"))

    runpy.run_path(str(SCRIPT), run_name="__main__")

    assert calls == ["render"]
