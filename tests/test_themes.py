import json

import pytest

from ulaunch.storage import Layout
from ulaunch.themes import (
    DEFAULT_THEME_DIR,
    Config,
    ProcessedTheme,
    Theme,
    create_config,
    ensure_config,
    load_config,
    load_theme,
    load_themes,
    process_theme,
    save_config,
    theme_resource,
)


@pytest.fixture
def layout(tmp_path):
    sd = tmp_path / "sd"
    (sd / "themes").mkdir(parents=True)
    return Layout(base_dir=sd, db_dir=tmp_path / "db")


def _write_json(path, document):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document), encoding="utf-8")


def test_load_theme_reads_manifest(layout):
    manifest = {
        "name": "Dark",
        "format_version": 0,
        "release": "1.0",
        "description": "A dark theme",
        "author": "Someone",
    }
    _write_json(layout.themes_path() / "dark" / "theme" / "Manifest.json", manifest)
    theme = load_theme(layout, "dark")
    assert theme.base_name == "dark"
    assert theme.path == str(layout.themes_path() / "dark")
    assert theme.manifest.name == "Dark"
    assert theme.manifest.release == "1.0"
    assert theme.manifest.description == "A dark theme"
    assert theme.manifest.author == "Someone"
    assert theme.manifest.format_version == 0


def test_load_theme_missing_name_quotes_base_name(layout):
    _write_json(layout.themes_path() / "plain" / "theme" / "Manifest.json", {})
    theme = load_theme(layout, "plain")
    assert theme.manifest.name == "'plain'"
    assert theme.manifest.author == ""


def test_load_theme_without_manifest_keeps_defaults(layout):
    (layout.themes_path() / "bare").mkdir()
    theme = load_theme(layout, "bare")
    assert theme.manifest.name == ""
    assert theme.path == str(layout.themes_path() / "bare")


def test_load_theme_empty_name_is_default(layout):
    theme = load_theme(layout, "")
    assert theme.path == DEFAULT_THEME_DIR
    assert DEFAULT_THEME_DIR == "romfs:/default"


def test_load_themes_lists_directories(layout):
    (layout.themes_path() / "one").mkdir()
    (layout.themes_path() / "two").mkdir()
    (layout.themes_path() / "file.txt").write_text("x")
    names = sorted(theme.base_name for theme in load_themes(layout))
    assert names == ["one", "two"]


def test_theme_resource_prefers_theme_then_default(layout, tmp_path):
    default_dir = tmp_path / "default"
    (default_dir / "ui").mkdir(parents=True)
    (default_dir / "ui" / "Background.png").write_bytes(b"d")
    (default_dir / "ui" / "Only.png").write_bytes(b"d")
    theme_dir = layout.themes_path() / "t"
    (theme_dir / "ui").mkdir(parents=True)
    (theme_dir / "ui" / "Background.png").write_bytes(b"t")
    theme = Theme(base_name="t", path=str(theme_dir), default_path=str(default_dir))

    assert theme_resource(layout, theme, "ui/Background.png") == f"{theme_dir}/ui/Background.png"
    assert theme_resource(layout, theme, "ui/Only.png") == f"{default_dir}/ui/Only.png"
    assert theme_resource(layout, theme, "ui/Missing.png") == ""


def test_process_theme_reads_ui_and_bgm(layout):
    theme_dir = layout.themes_path() / "t"
    _write_json(theme_dir / "ui" / "UI.json", {"suspended_final_alpha": 120})
    _write_json(theme_dir / "sound" / "BGM.json", {"loop": False, "fade_in": False, "fade_out": True})
    theme = load_theme(layout, "t")
    processed = process_theme(layout, theme)
    assert processed.base == theme
    assert processed.ui.suspended_final_alpha == 120
    assert processed.sound.loop is False
    assert processed.sound.fade_in is False
    # fade_out follows the fade_in key
    assert processed.sound.fade_out is False


def test_process_theme_ui_default_alpha(layout):
    theme_dir = layout.themes_path() / "t"
    _write_json(theme_dir / "ui" / "UI.json", {})
    processed = process_theme(layout, load_theme(layout, "t"))
    assert processed.ui.suspended_final_alpha == 80
    assert processed.sound.loop is True


def test_processed_theme_resource(layout):
    theme_dir = layout.themes_path() / "t"
    _write_json(theme_dir / "ui" / "UI.json", {})
    processed = process_theme(layout, load_theme(layout, "t"))
    assert processed.resource("ui/UI.json") == f"{theme_dir}/ui/UI.json"
    assert processed.resource("nothing/here.json") == ""


def test_processed_theme_resource_with_explicit_theme(layout):
    theme_dir = layout.themes_path() / "x"
    _write_json(theme_dir / "a.json", {})
    processed = ProcessedTheme(base=Theme(base_name="x", path=str(theme_dir)), layout=layout)
    assert processed.resource("a.json") == f"{theme_dir}/a.json"


def test_config_round_trip(layout):
    config = Config(theme_name="dark", system_title_override_enabled=True, viewer_usb_enabled=True)
    save_config(layout, config)
    assert load_config(layout) == config


def test_save_config_writes_expected_keys(layout):
    save_config(layout, Config(theme_name="dark"))
    document = json.loads(layout.config_path().read_text(encoding="utf-8"))
    assert document == {
        "theme_name": "dark",
        "system_title_override_enabled": False,
        "viewer_usb_enabled": False,
    }


def test_load_config_missing_file_gives_defaults(layout):
    assert load_config(layout) == Config()


def test_create_config_writes_defaults(layout):
    config = create_config(layout)
    assert config == Config()
    assert layout.config_path().is_file()


def test_ensure_config_creates_then_loads(layout):
    assert not layout.config_path().exists()
    assert ensure_config(layout) == Config()
    assert layout.config_path().is_file()
    save_config(layout, Config(theme_name="blue"))
    assert ensure_config(layout).theme_name == "blue"


def test_load_config_ignores_wrong_types(layout):
    _write_json(layout.config_path(), {"theme_name": 5, "viewer_usb_enabled": True})
    config = load_config(layout)
    assert config.theme_name == ""
    assert config.viewer_usb_enabled is True