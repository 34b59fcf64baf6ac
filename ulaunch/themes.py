"""Themes, their processed settings, and the launcher's configuration file."""

from __future__ import annotations

import json
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Any

from .results import ResultError
from .storage import (
    Layout,
    delete_file,
    exists_file,
    iter_directories,
    load_json,
)

DEFAULT_THEME_DIR = "romfs:/default"
"""Directory of the built-in theme, used when a resource is missing."""

CURRENT_THEME_FORMAT_VERSION = 0

_DEFAULT_SUSPENDED_FINAL_ALPHA = 80


def _value(document: Any, key: str, default: Any) -> Any:
    """Return ``document[key]`` if present and of the default's type."""
    if not isinstance(document, dict):
        return default
    value = document.get(key, default)
    if isinstance(default, bool):
        return value if isinstance(value, bool) else default
    if isinstance(default, int):
        return value if isinstance(value, int) and not isinstance(value, bool) else default
    return value if isinstance(value, type(default)) else default


@dataclass
class ThemeManifest:
    name: str = ""
    format_version: int = CURRENT_THEME_FORMAT_VERSION
    release: str = ""
    description: str = ""
    author: str = ""


@dataclass
class Theme:
    """A theme directory and its manifest."""

    base_name: str = ""
    path: str = ""
    manifest: ThemeManifest = field(default_factory=ThemeManifest)
    default_path: str = DEFAULT_THEME_DIR


@dataclass
class UIConfig:
    suspended_final_alpha: int = _DEFAULT_SUSPENDED_FINAL_ALPHA


@dataclass
class SoundConfig:
    loop: bool = True
    fade_in: bool = True
    fade_out: bool = True


@dataclass
class ProcessedTheme:
    """A theme together with the settings read from its resources."""

    base: Theme = field(default_factory=Theme)
    ui: UIConfig = field(default_factory=UIConfig)
    sound: SoundConfig = field(default_factory=SoundConfig)
    layout: Layout = field(default_factory=Layout)

    def resource(self, resource_base: str) -> str:
        """Return the path of a resource of this theme, or an empty string."""
        return theme_resource(self.layout, self.base, resource_base)


@dataclass
class Config:
    theme_name: str = ""
    system_title_override_enabled: bool = False
    viewer_usb_enabled: bool = False


def load_theme(layout: Layout, base_name: str) -> Theme:
    """Load a theme by directory name; an empty name means the built-in theme."""
    theme = Theme(base_name=base_name)
    theme.path = (
        str(layout.themes_path() / base_name) if base_name else theme.default_path
    )
    try:
        meta = load_json(f"{theme.path}/theme/Manifest.json")
    except ResultError:
        return theme
    theme.manifest = ThemeManifest(
        name=_value(meta, "name", f"'{base_name}'"),
        format_version=_value(meta, "format_version", CURRENT_THEME_FORMAT_VERSION),
        release=_value(meta, "release", ""),
        description=_value(meta, "description", ""),
        author=_value(meta, "author", ""),
    )
    return theme


def load_themes(layout: Layout) -> list[Theme]:
    """Load every theme found in the themes directory."""
    themes = (load_theme(layout, name) for name, _path in iter_directories(layout.themes_path()))
    return [theme for theme in themes if theme.path]


def theme_resource(layout: Layout, theme: Theme, resource_base: str) -> str:
    """Return a resource from the theme, else from the built-in theme, else ``""``."""
    for directory in (theme.path, theme.default_path):
        candidate = f"{directory}/{resource_base}"
        if exists_file(candidate):
            return candidate
    return ""


def process_theme(layout: Layout, theme: Theme) -> ProcessedTheme:
    """Read the UI and background music settings of a theme."""
    processed = ProcessedTheme(base=theme, layout=layout)
    try:
        ui = load_json(theme_resource(layout, theme, "ui/UI.json"))
    except ResultError:
        return processed
    alpha = _value(ui, "suspended_final_alpha", _DEFAULT_SUSPENDED_FINAL_ALPHA)
    processed.ui.suspended_final_alpha = alpha & 0xFF
    try:
        bgm = load_json(theme_resource(layout, theme, "sound/BGM.json"))
    except ResultError:
        return processed
    processed.sound.loop = _value(bgm, "loop", True)
    processed.sound.fade_in = _value(bgm, "fade_in", True)
    # Fade-out follows the "fade_in" key, as the theme format has always done.
    processed.sound.fade_out = _value(bgm, "fade_in", True)
    return processed


def create_config(layout: Layout) -> Config:
    """Write and return a fresh default configuration."""
    config = Config()
    save_config(layout, config)
    return config


def load_config(layout: Layout) -> Config:
    """Read the configuration file; missing or broken files give defaults."""
    config = Config()
    try:
        document = load_json(layout.config_path())
    except ResultError:
        return config
    config.theme_name = _value(document, "theme_name", "")
    config.system_title_override_enabled = _value(
        document, "system_title_override_enabled", False
    )
    config.viewer_usb_enabled = _value(document, "viewer_usb_enabled", False)
    return config


def ensure_config(layout: Layout) -> Config:
    """Load the configuration, creating a default one if there is none."""
    if not exists_file(layout.config_path()):
        return create_config(layout)
    return load_config(layout)


def save_config(layout: Layout, config: Config) -> None:
    """Replace the configuration file with ``config``."""
    path = layout.config_path()
    delete_file(path)
    document = {
        "theme_name": config.theme_name,
        "system_title_override_enabled": config.system_title_override_enabled,
        "viewer_usb_enabled": config.viewer_usb_enabled,
    }
    with suppress(OSError):
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(json.dumps(document, indent=4, sort_keys=True, ensure_ascii=False))