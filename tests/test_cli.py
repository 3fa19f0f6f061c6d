"""
Tests for the credential management CLI commands.
"""

import json

from cli.main import build_parser, run_command


def _run(settings_path, *argv):
    args = build_parser().parse_args(["--settings-file", str(settings_path), *argv])
    return run_command(args)


def test_set_key_and_disconnect(settings_path):
    assert _run(settings_path, "set-key", "codex", "sk-1") == 0
    assert json.loads(settings_path.read_text())["models"]["openai"] == {"apiKey": "sk-1", "auth_method": "api_key"}

    assert _run(settings_path, "disconnect", "openai") == 0
    assert json.loads(settings_path.read_text())["models"]["openai"] == {}


def test_unknown_provider_exit_code(settings_path):
    assert _run(settings_path, "disconnect", "gemini") == 1


def test_status_runs_on_empty_settings(settings_path, capsys):
    assert _run(settings_path, "status") == 0
    assert "Claude" in capsys.readouterr().out
