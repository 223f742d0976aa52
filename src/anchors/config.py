"""Load anchors settings from ``.anchors.yml`` plus the ``[anchors]`` git config section."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from anchors.constants import (
    DEFAULT_END_TAG,
    DEFAULT_EXCLUDE_FILES,
    DEFAULT_MATCH_FILES,
    DEFAULT_MAX_FILES,
    DEFAULT_PARSE_DELAY,
    DEFAULT_PREFIXES,
    DEFAULT_SEPARATORS,
    PATH_FORMATS,
    SETTINGS_FILE,
    SORT_METHODS,
)
from anchors.git import read_anchors_config
from anchors.tags import python_key

logger = logging.getLogger(__name__)


@dataclass
class TagSettings:
    legacy: list[dict] = field(default_factory=list)
    anchors: dict[str, dict] = field(default_factory=dict)
    separators: list[str] = field(default_factory=lambda: list(DEFAULT_SEPARATORS))
    prefixes: list[str] = field(default_factory=lambda: list(DEFAULT_PREFIXES))
    end_tag: str = DEFAULT_END_TAG
    match_case: bool = False
    display_tag_name: bool = True
    display_line_number: bool = True
    display_hierarchy_in_workspace: bool = True
    sort_method: str = "line"
    expand_sections: bool = True


@dataclass
class WorkspaceSettings:
    enabled: bool = True
    lazy_load: bool = False
    match_files: str = DEFAULT_MATCH_FILES
    exclude_files: str = DEFAULT_EXCLUDE_FILES
    max_files: int = DEFAULT_MAX_FILES
    path_format: str = "full"


@dataclass
class EpicSettings:
    seq_step: int = 1


@dataclass
class Settings:
    """Everything the engine and its views read from configuration."""

    tags: TagSettings = field(default_factory=TagSettings)
    workspace: WorkspaceSettings = field(default_factory=WorkspaceSettings)
    epic: EpicSettings = field(default_factory=EpicSettings)
    parse_delay: int = DEFAULT_PARSE_DELAY
    show_cursor: bool = True

    @property
    def parse_delay_seconds(self) -> float:
        return max(self.parse_delay, 0) / 1000


# names used by the editor extension settings
_ALIASES = {
    "list": "legacy",
    "match_prefix": "prefixes",
    "display_in_sidebar": "display_tag_name",
}

# git config key -> (section attribute, field)
_GIT_OVERLAY = {
    "max_files": ("workspace", "max_files"),
    "parse_delay": (None, "parse_delay"),
    "lazy_load": ("workspace", "lazy_load"),
    "workspace_enabled": ("workspace", "enabled"),
    "match_case": ("tags", "match_case"),
    "end_tag": ("tags", "end_tag"),
}


def _apply(target: Any, data: dict[str, Any]) -> None:
    """Copy known keys from data onto a settings dataclass, keeping the field's type."""
    for raw_key, value in data.items():
        key = python_key(str(raw_key))
        key = _ALIASES.get(key, key)
        if not hasattr(target, key) or value is None:
            continue
        current = getattr(target, key)
        if isinstance(current, bool):
            value = bool(value)
        elif isinstance(current, int):
            try:
                value = int(value)
            except (TypeError, ValueError):
                logger.warning("ignoring non-integer setting %s=%r", key, value)
                continue
        elif isinstance(current, list):
            if isinstance(value, str):
                value = [value]
            if not isinstance(value, list):
                logger.warning("ignoring non-list setting %s=%r", key, value)
                continue
            # tag lists hold dicts; separators and prefixes hold literals
            if key in ("separators", "prefixes"):
                value = [str(v) for v in value]
        elif isinstance(current, dict):
            if not isinstance(value, dict):
                logger.warning("ignoring non-mapping setting %s=%r", key, value)
                continue
        elif isinstance(current, str):
            value = str(value)
        setattr(target, key, value)


def settings_from_dict(data: dict[str, Any]) -> Settings:
    """Build Settings from a parsed settings mapping."""
    settings = Settings()
    sections = {"tags": settings.tags, "workspace": settings.workspace, "epic": settings.epic}
    top: dict[str, Any] = {}
    for raw_key, value in data.items():
        key = python_key(str(raw_key))
        if key in sections:
            if isinstance(value, dict):
                _apply(sections[key], value)
        else:
            top[key] = value
    _apply(settings, top)

    if settings.tags.sort_method not in SORT_METHODS:
        logger.warning("invalid sort method %r, using line", settings.tags.sort_method)
        settings.tags.sort_method = "line"
    if settings.workspace.path_format not in PATH_FORMATS:
        settings.workspace.path_format = "full"
    return settings


def apply_git_overlay(settings: Settings, overlay: dict[str, Any]) -> Settings:
    """Apply ``[anchors]`` git config values over settings."""
    for key, value in overlay.items():
        target = _GIT_OVERLAY.get(key)
        if target is None:
            continue
        section, attr = target
        setattr(getattr(settings, section) if section else settings, attr, value)
    return settings


def read_settings_file(path: Path) -> dict[str, Any]:
    """Parse a YAML settings file. Missing or malformed files yield {}."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as exc:
        logger.warning("cannot read %s: %s", path, exc)
        return {}
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        logger.warning("invalid settings in %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("settings in %s are not a mapping", path)
        return {}
    return data


def load_settings(root: str | Path, config_path: str | Path | None = None) -> Settings:
    """Load settings for the workspace at root."""
    root = Path(root)
    path = Path(config_path) if config_path else root / SETTINGS_FILE
    settings = settings_from_dict(read_settings_file(path))
    return apply_git_overlay(settings, read_anchors_config(root))
