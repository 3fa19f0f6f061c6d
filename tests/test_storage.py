"""
Tests for the settings document store: repair, provider detection, writes.
"""

import json
import os
import platform
from datetime import datetime

import pytest

from utils.storage import SettingsStore, detect_provider


def _backups(settings_path):
    return sorted(settings_path.parent.glob(settings_path.name + ".*.bak"))


class TestLoad:
    def test_missing_file_is_empty_document(self, store):
        assert store.load() == {}

    def test_valid_document_round_trips(self, store, settings_path):
        settings_path.write_text(json.dumps({"workspace": {"path": "/w"}}))
        assert store.load() == {"workspace": {"path": "/w"}}
        assert _backups(settings_path) == []

    def test_trailing_comma_is_repaired_with_backup(self, store, settings_path):
        broken = '{\n  "models": {\n    "provider": "anthropic",\n    "anthropic": {"model": "sonnet"},\n  },\n}\n'
        settings_path.write_text(broken)

        document = store.load()

        assert document == {"models": {"provider": "anthropic", "anthropic": {"model": "sonnet"}}}
        backups = _backups(settings_path)
        assert len(backups) == 1
        assert backups[0].read_bytes() == broken.encode("utf-8")
        # Canonical file now holds valid, re-serialized JSON
        assert json.loads(settings_path.read_text()) == document

    def test_unbalanced_brackets_are_repaired(self, store, settings_path):
        settings_path.write_text('{"channels": {"enabled": ["discord", "telegram"]')
        assert store.load() == {"channels": {"enabled": ["discord", "telegram"]}}

    def test_unrecoverable_text_yields_empty_document(self, store, settings_path):
        settings_path.write_text("this is definitely not json")

        assert store.load() == {}
        assert _backups(settings_path) == []
        assert settings_path.read_text() == "this is definitely not json"

    def test_non_object_root_yields_empty_document(self, store, settings_path):
        settings_path.write_text("[1, 2, 3]")
        assert store.load() == {}

    def test_repair_logs_warning(self, store, settings_path, caplog):
        settings_path.write_text('{"a": 1,}')
        with caplog.at_level("WARNING", logger="utils.storage"):
            store.load()
        assert any("Auto-fixed" in record.getMessage() for record in caplog.records)

    def test_repairs_within_one_instant_keep_every_backup(self, store, settings_path, monkeypatch):
        frozen = datetime(2026, 1, 2, 3, 4, 5, 678901)

        class FrozenDatetime(datetime):
            @classmethod
            def now(cls, tz=None):
                return frozen

        monkeypatch.setattr("utils.storage.datetime", FrozenDatetime)

        settings_path.write_text('{"a": 1,}')
        store.load()
        settings_path.write_text('{"b": 2,}')
        store.load()

        backups = _backups(settings_path)
        assert len(backups) == 2
        assert sorted(b.read_text() for b in backups) == ['{"a": 1,}', '{"b": 2,}']

    def test_unreadable_file_loads_as_empty_document(self, store, settings_path, monkeypatch):
        settings_path.write_text(json.dumps({"a": 1}))

        def refuse():
            raise PermissionError(13, "Permission denied", str(settings_path))

        monkeypatch.setattr(store, "_read_raw", refuse)

        assert store.load() == {}


class TestProviderDetection:
    def test_openai_key_without_provider(self, store, settings_path):
        settings_path.write_text(json.dumps({"models": {"openai": {"apiKey": "x"}}}))
        assert store.load()["models"]["provider"] == "openai"

    def test_detection_order_prefers_openai_then_opencode(self):
        document = {"models": {"anthropic": {"model": "sonnet"}, "opencode": {"model": "m"}}}
        detect_provider(document)
        assert document["models"]["provider"] == "opencode"

        document = {"models": {"anthropic": {"model": "sonnet"}, "openai": {"model": "gpt"}}}
        detect_provider(document)
        assert document["models"]["provider"] == "openai"

    def test_explicit_provider_is_kept(self):
        document = {"models": {"provider": "anthropic", "openai": {"apiKey": "x"}}}
        detect_provider(document)
        assert document["models"]["provider"] == "anthropic"

    def test_nothing_to_detect(self):
        document = {"models": {"anthropic": {}}}
        detect_provider(document)
        assert "provider" not in document["models"]


class TestMutate:
    def test_mutate_writes_and_returns_document(self, store, settings_path):
        written = store.mutate(lambda d: d.setdefault("monitoring", {}).update(heartbeat_interval=30))

        assert written == {"monitoring": {"heartbeat_interval": 30}}
        assert json.loads(settings_path.read_text()) == written
        assert settings_path.read_text().endswith("\n")

    def test_update_is_shallow(self, store, settings_path):
        settings_path.write_text(json.dumps({"models": {"anthropic": {"apiKey": "k"}}, "workspace": {"path": "/w"}}))

        result = store.update({"models": {"openai": {"model": "gpt"}}})

        assert result["workspace"] == {"path": "/w"}
        assert "anthropic" not in result["models"]
        assert result["models"]["openai"] == {"model": "gpt"}

    def test_external_edit_during_mutate_is_not_lost(self, store, settings_path):
        settings_path.write_text(json.dumps({"workspace": {"path": "/w"}}))
        calls = []

        def transform(document):
            calls.append(dict(document))
            if len(calls) == 1:
                # Another writer saves between our read and our write
                settings_path.write_text(json.dumps({"workspace": {"path": "/w"}, "teams": {"t": {}}}))
            document["agents"] = {"default": {}}

        result = store.mutate(transform)

        assert len(calls) == 2
        assert result["teams"] == {"t": {}}
        assert result["agents"] == {"default": {}}
        assert json.loads(settings_path.read_text()) == result

    @pytest.mark.skipif(platform.system() == "Windows", reason="POSIX permissions")
    def test_written_file_is_private(self, store, settings_path):
        store.mutate(lambda d: d.update(a=1))
        assert os.stat(settings_path).st_mode & 0o777 == 0o600

    def test_mutate_leaves_no_temp_files(self, store, settings_path):
        store.mutate(lambda d: d.update(a=1))
        assert [p.name for p in settings_path.parent.iterdir()] == ["settings.json"]

    def test_mutate_over_unreadable_file_keeps_backup(self, store, settings_path):
        settings_path.write_text("this is definitely not json")

        result = store.mutate(lambda d: d.update(a=1))

        assert result == {"a": 1}
        backups = _backups(settings_path)
        assert len(backups) == 1
        assert backups[0].read_text() == "this is definitely not json"

    def test_mutate_refuses_to_overwrite_file_it_cannot_read(self, store, settings_path, monkeypatch):
        original = json.dumps({"models": {"provider": "openai"}, "apiKey": "sk-keep"})
        settings_path.write_text(original)

        def refuse():
            raise PermissionError(13, "Permission denied", str(settings_path))

        monkeypatch.setattr(store, "_read_raw", refuse)

        with pytest.raises(OSError):
            store.mutate(lambda d: d.update(a=1))

        assert settings_path.read_text() == original
        assert _backups(settings_path) == []
