from __future__ import annotations

import importlib
import json

import pytest


def test_console_entrypoint_exposes_app() -> None:
    pytest.importorskip("typer")

    module = importlib.import_module("mc_session.main")

    assert hasattr(module, "app")
    assert module.app is not None


def test_match_command_reports_rules() -> None:
    testing = pytest.importorskip("typer.testing")
    module = importlib.import_module("mc_session.main")

    result = testing.CliRunner().invoke(module.app, ["match", "[VIP] ┃ Bob möchte sich zu dir teleportieren."])

    assert result.exit_code == 0
    assert "teleport_request" in result.output


def test_decode_command_prints_plain_text() -> None:
    testing = pytest.importorskip("typer.testing")
    module = importlib.import_module("mc_session.main")

    payload = json.dumps({"text": "A", "extra": [{"text": "B", "bold": True}]})
    result = testing.CliRunner().invoke(module.app, ["decode", payload])

    assert result.exit_code == 0
    assert "AB" in result.output
