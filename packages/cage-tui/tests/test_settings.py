"""Tests for the hierarchical dashboard settings."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from cage.tui.settings import (
    DEFAULT_MAX_LOG_LINES,
    LayoutSettings,
    TuiSettings,
    _migrate_settings,
    deep_merge_settings,
)

# --- Deep merge ---


def test_deep_merge_simple():
    assert deep_merge_settings({"a": 1, "b": 2}, {"b": 3, "c": 4}) == {"a": 1, "b": 3, "c": 4}


def test_deep_merge_nested():
    base = {"layout": {"headerHeight": 3, "footerHeight": 3}}
    overrides = {"layout": {"footerHeight": 1}}
    result = deep_merge_settings(base, overrides)
    assert result == {"layout": {"headerHeight": 3, "footerHeight": 1}}


def test_deep_merge_none_values_skipped():
    assert deep_merge_settings({"a": 1}, {"a": None, "c": 3}) == {"a": 1, "c": 3}


def test_deep_merge_list_replacement():
    base = {"keybindings": {"listDown": ["down", "j"]}}
    overrides = {"keybindings": {"listDown": ["n"]}}
    assert deep_merge_settings(base, overrides)["keybindings"]["listDown"] == ["n"]


# --- Migrations ---


def test_migrate_renamed_keys():
    migrated = _migrate_settings({"enableWrapAround": False, "autoScroll": False})
    assert migrated == {"wrapAround": False, "followLatest": False}


def test_migrate_keybindings_spelling():
    migrated = _migrate_settings({"keyBindings": {"quit": "ctrl+q"}})
    assert migrated == {"keybindings": {"quit": "ctrl+q"}}


def test_migrate_new_key_wins():
    migrated = _migrate_settings({"enableWrapAround": False, "wrapAround": True})
    assert migrated == {"wrapAround": True}


def test_migrate_no_change():
    assert _migrate_settings({"logLevel": "debug"}) == {"logLevel": "debug"}


# --- In-memory settings ---


def test_in_memory_defaults():
    settings = TuiSettings.in_memory()
    assert settings.get_wrap_around() is True
    assert settings.get_follow_latest() is True
    assert settings.get_min_list_height() == 5
    assert settings.get_max_list_height() is None
    assert settings.get_keybindings() == {}
    assert settings.get_log_file() is None
    assert settings.get_log_level() == "INFO"
    assert settings.get_max_log_lines() == DEFAULT_MAX_LOG_LINES
    assert settings.get_layout_settings() == LayoutSettings()


def test_in_memory_migrates_legacy_keys():
    settings = TuiSettings.in_memory({"autoScroll": False})
    assert settings.get_follow_latest() is False


def test_in_memory_setters():
    settings = TuiSettings.in_memory()
    settings.set_wrap_around(False)
    settings.set_max_list_height(12)
    settings.set_keybindings({"listDown": "n"})
    assert settings.get_wrap_around() is False
    assert settings.get_max_list_height() == 12
    assert settings.get_keybindings() == {"listDown": "n"}


def test_min_list_height_at_least_one():
    assert TuiSettings.in_memory({"minListHeight": 0}).get_min_list_height() == 1


def test_layout_settings():
    settings = TuiSettings.in_memory({"layout": {"headerHeight": 1, "contentPadding": 0}})
    assert settings.get_header_height() == 1
    assert settings.get_footer_height() == 3
    assert settings.get_content_padding() == 0


def test_apply_overrides():
    settings = TuiSettings.in_memory({"wrapAround": True, "logLevel": "info"})
    settings.apply_overrides({"wrapAround": False})
    assert settings.get_wrap_around() is False
    assert settings.get_log_level() == "info"


# --- File persistence ---


def test_create_and_save():
    with tempfile.TemporaryDirectory() as tmpdir:
        config_dir = os.path.join(tmpdir, ".cage")
        cwd = os.path.join(tmpdir, "project")
        os.makedirs(cwd, exist_ok=True)

        settings = TuiSettings.create(cwd, config_dir)
        settings.set_follow_latest(False)

        settings_path = os.path.join(config_dir, "tui.json")
        content = json.loads(Path(settings_path).read_text(encoding="utf-8"))
        assert content == {"followLatest": False}


def test_project_settings_override():
    with tempfile.TemporaryDirectory() as tmpdir:
        config_dir = os.path.join(tmpdir, ".cage")
        cwd = os.path.join(tmpdir, "project")
        project_dir = os.path.join(cwd, ".cage")
        os.makedirs(project_dir, exist_ok=True)
        os.makedirs(config_dir, exist_ok=True)

        Path(os.path.join(config_dir, "tui.json")).write_text(
            json.dumps({"wrapAround": False, "logLevel": "debug"}),
            encoding="utf-8",
        )
        Path(os.path.join(project_dir, "tui.json")).write_text(
            json.dumps({"wrapAround": True}),
            encoding="utf-8",
        )

        settings = TuiSettings.create(cwd, config_dir)
        assert settings.get_wrap_around() is True
        assert settings.get_log_level() == "debug"

        # CLI overrides beat both files and are never written back
        settings.apply_overrides({"wrapAround": False})
        assert settings.get_wrap_around() is False
        settings.set_follow_latest(True)
        content = json.loads(Path(os.path.join(config_dir, "tui.json")).read_text(encoding="utf-8"))
        assert content == {"wrapAround": False, "logLevel": "debug", "followLatest": True}


def test_reload():
    with tempfile.TemporaryDirectory() as tmpdir:
        config_dir = os.path.join(tmpdir, ".cage")
        cwd = os.path.join(tmpdir, "project")
        os.makedirs(cwd, exist_ok=True)

        settings = TuiSettings.create(cwd, config_dir)
        settings.set_wrap_around(False)

        Path(os.path.join(config_dir, "tui.json")).write_text(
            json.dumps({"wrapAround": True}),
            encoding="utf-8",
        )
        settings.reload()
        assert settings.get_wrap_around() is True


def test_modification_tracking_preserves_external_changes():
    with tempfile.TemporaryDirectory() as tmpdir:
        config_dir = os.path.join(tmpdir, ".cage")
        cwd = os.path.join(tmpdir, "project")
        os.makedirs(cwd, exist_ok=True)
        os.makedirs(config_dir, exist_ok=True)
        settings_path = os.path.join(config_dir, "tui.json")

        Path(settings_path).write_text(json.dumps({"logLevel": "info"}), encoding="utf-8")
        settings = TuiSettings.create(cwd, config_dir)

        # Another process edits the file
        Path(settings_path).write_text(json.dumps({"logLevel": "warning"}), encoding="utf-8")
        settings.set_wrap_around(False)

        content = json.loads(Path(settings_path).read_text(encoding="utf-8"))
        assert content == {"logLevel": "warning", "wrapAround": False}


def test_corrupt_file_is_never_overwritten():
    with tempfile.TemporaryDirectory() as tmpdir:
        config_dir = os.path.join(tmpdir, ".cage")
        cwd = os.path.join(tmpdir, "project")
        os.makedirs(cwd, exist_ok=True)
        os.makedirs(config_dir, exist_ok=True)
        settings_path = os.path.join(config_dir, "tui.json")
        Path(settings_path).write_text("{not json", encoding="utf-8")

        settings = TuiSettings.create(cwd, config_dir)
        assert settings.load_error is not None
        assert settings.get_wrap_around() is True

        settings.set_wrap_around(False)
        assert settings.get_wrap_around() is False
        assert Path(settings_path).read_text(encoding="utf-8") == "{not json"


def test_non_object_json_is_rejected():
    with tempfile.TemporaryDirectory() as tmpdir:
        config_dir = os.path.join(tmpdir, ".cage")
        os.makedirs(config_dir, exist_ok=True)
        Path(os.path.join(config_dir, "tui.json")).write_text("[1, 2]", encoding="utf-8")

        settings = TuiSettings.create(os.path.join(tmpdir, "project"), config_dir)
        assert isinstance(settings.load_error, ValueError)
        assert settings.settings == {}
