"""Hierarchical dashboard settings with JSON persistence.

Precedence, highest first: CLI overrides, project ``.cage/tui.json``, global
``~/.cage/tui.json``.  Setters write only the fields they modified back to the
global file, so edits made by other processes survive.
"""

from __future__ import annotations

import json
import logging
import os
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from cage.tui.height import DEFAULT_MIN_HEIGHT
from cage.tui.layout import DEFAULT_CONTENT_PADDING, DEFAULT_FOOTER_HEIGHT, DEFAULT_HEADER_HEIGHT

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".cage"
SETTINGS_FILE_NAME = "tui.json"
DEFAULT_MAX_LOG_LINES = 1000


@dataclass
class LayoutSettings:
    """Rows taken by the frame around every view."""

    header_height: int = DEFAULT_HEADER_HEIGHT
    footer_height: int = DEFAULT_FOOTER_HEIGHT
    content_padding: int = DEFAULT_CONTENT_PADDING


# --- Deep merge ---


def deep_merge_settings(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *overrides* into *base*.

    Nested dicts merge key by key; anything else in *overrides* replaces the
    base value outright.  ``None`` overrides are ignored.
    """
    result = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = deep_merge_settings(result[key], value)
        else:
            result[key] = value
    return result


# --- Migrations ---


_RENAMED_KEYS = (
    ("enableWrapAround", "wrapAround"),
    ("autoScroll", "followLatest"),
    ("keyBindings", "keybindings"),
)


def _migrate_settings(settings: dict[str, Any]) -> dict[str, Any]:
    """Rename legacy keys.  A new key already present wins over the old one."""
    for old, new in _RENAMED_KEYS:
        if old not in settings:
            continue
        value = settings.pop(old)
        settings.setdefault(new, value)
    return settings


# --- TuiSettings ---


class TuiSettings:
    """Dashboard settings.  Build with :meth:`create` or :meth:`in_memory`."""

    def __init__(
        self,
        *,
        settings_path: str | None,
        project_settings_path: str | None,
        initial_settings: dict[str, Any],
        persist: bool = True,
        load_error: Exception | None = None,
    ) -> None:
        self._settings_path = settings_path
        self._project_settings_path = project_settings_path
        self._global_settings = dict(initial_settings)
        self._persist = persist
        self._load_error = load_error
        self._overrides: dict[str, Any] = {}
        self._modified_fields: set[str] = set()
        self._settings: dict[str, Any] = {}
        self._merge()

    # --- Factory methods ---

    @classmethod
    def create(cls, cwd: str, config_dir: str | None = None) -> TuiSettings:
        """Settings backed by the global and project files under *cwd*."""
        cdir = config_dir or _default_config_dir()
        settings_path = os.path.join(cdir, SETTINGS_FILE_NAME)
        project_settings_path = os.path.join(cwd, CONFIG_DIR_NAME, SETTINGS_FILE_NAME)

        settings, error = _load_from_file(settings_path)
        if error is not None:
            logger.warning("Ignoring unreadable settings file %s: %s", settings_path, error)
        return cls(
            settings_path=settings_path,
            project_settings_path=project_settings_path,
            initial_settings=settings,
            persist=True,
            load_error=error,
        )

    @classmethod
    def in_memory(cls, settings: dict[str, Any] | None = None) -> TuiSettings:
        """Settings that never touch the filesystem (tests, demos)."""
        return cls(
            settings_path=None,
            project_settings_path=None,
            initial_settings=_migrate_settings(dict(settings or {})),
            persist=False,
        )

    # --- Core operations ---

    @property
    def settings(self) -> dict[str, Any]:
        """Current merged settings (read-only view)."""
        return self._settings

    @property
    def load_error(self) -> Exception | None:
        return self._load_error

    def reload(self) -> None:
        if self._settings_path:
            self._global_settings, self._load_error = _load_from_file(self._settings_path)
        self._modified_fields.clear()
        self._merge()

    def apply_overrides(self, overrides: dict[str, Any]) -> None:
        """Layer CLI overrides over file settings.  They are never saved."""
        self._overrides = deep_merge_settings(self._overrides, overrides)
        self._merge()

    def get_global_settings(self) -> dict[str, Any]:
        return deepcopy(self._global_settings)

    def _merge(self) -> None:
        project = self._load_project_settings()
        self._settings = deep_merge_settings(
            deep_merge_settings(self._global_settings, project), self._overrides
        )

    def _load_project_settings(self) -> dict[str, Any]:
        if not self._project_settings_path:
            return {}
        settings, error = _load_from_file(self._project_settings_path)
        if error is not None:
            logger.warning(
                "Ignoring unreadable settings file %s: %s", self._project_settings_path, error
            )
        return settings

    # --- Persistence ---

    def _set(self, field_name: str, value: Any) -> None:
        self._global_settings[field_name] = value
        self._modified_fields.add(field_name)
        self._save()

    def _save(self) -> None:
        """Write modified fields to the global file, keeping external changes."""
        if self._persist and self._settings_path:
            # Never overwrite a file we could not parse.
            if self._load_error is not None:
                logger.warning(
                    "Not saving settings: %s could not be read", self._settings_path
                )
            else:
                current_file, _ = _load_from_file(self._settings_path)
                merged = dict(current_file)
                for field_name in self._modified_fields:
                    merged[field_name] = self._global_settings.get(field_name)
                merged = {k: v for k, v in merged.items() if v is not None}

                os.makedirs(os.path.dirname(self._settings_path), exist_ok=True)
                Path(self._settings_path).write_text(
                    json.dumps(merged, indent=2, ensure_ascii=False) + "\n",
                    encoding="utf-8",
                )
        self._merge()

    # --- Getters: List behaviour ---

    def get_wrap_around(self) -> bool:
        val = self._settings.get("wrapAround")
        return True if val is None else bool(val)

    def get_follow_latest(self) -> bool:
        val = self._settings.get("followLatest")
        return True if val is None else bool(val)

    def get_min_list_height(self) -> int:
        val = self._settings.get("minListHeight")
        return max(1, int(val)) if val is not None else DEFAULT_MIN_HEIGHT

    def get_max_list_height(self) -> int | None:
        val = self._settings.get("maxListHeight")
        return int(val) if val is not None else None

    # --- Setters: List behaviour ---

    def set_wrap_around(self, enabled: bool) -> None:
        self._set("wrapAround", enabled)

    def set_follow_latest(self, enabled: bool) -> None:
        self._set("followLatest", enabled)

    def set_min_list_height(self, rows: int) -> None:
        self._set("minListHeight", rows)

    def set_max_list_height(self, rows: int | None) -> None:
        self._set("maxListHeight", rows)

    # --- Getters: Layout ---

    def get_layout_settings(self) -> LayoutSettings:
        layout = self._settings.get("layout") or {}
        return LayoutSettings(
            header_height=layout.get("headerHeight", DEFAULT_HEADER_HEIGHT),
            footer_height=layout.get("footerHeight", DEFAULT_FOOTER_HEIGHT),
            content_padding=layout.get("contentPadding", DEFAULT_CONTENT_PADDING),
        )

    def get_header_height(self) -> int:
        return self.get_layout_settings().header_height

    def get_footer_height(self) -> int:
        return self.get_layout_settings().footer_height

    def get_content_padding(self) -> int:
        return self.get_layout_settings().content_padding

    # --- Getters: Keybindings ---

    def get_keybindings(self) -> dict[str, str | list[str]]:
        return dict(self._settings.get("keybindings") or {})

    def set_keybindings(self, keybindings: dict[str, str | list[str]]) -> None:
        self._set("keybindings", dict(keybindings))

    # --- Getters: Logging ---

    def get_log_file(self) -> str | None:
        return self._settings.get("logFile")

    def get_log_level(self) -> str:
        return self._settings.get("logLevel") or "INFO"

    def get_max_log_lines(self) -> int:
        val = self._settings.get("maxLogLines")
        return int(val) if val is not None else DEFAULT_MAX_LOG_LINES


def _load_from_file(path: str) -> tuple[dict[str, Any], Exception | None]:
    """Load settings from a JSON file. Returns (settings, error)."""
    if not os.path.exists(path):
        return {}, None
    try:
        content = Path(path).read_text(encoding="utf-8")
        settings = json.loads(content)
    except (OSError, json.JSONDecodeError) as e:
        return {}, e
    if not isinstance(settings, dict):
        return {}, ValueError(f"{path}: expected a JSON object")
    return _migrate_settings(settings), None


def _default_config_dir() -> str:
    """Default config directory (~/.cage)."""
    return os.path.join(os.path.expanduser("~"), CONFIG_DIR_NAME)
