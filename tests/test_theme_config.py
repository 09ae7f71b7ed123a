"""Tests for theme_config."""

import json

import pytest
from pydantic import ValidationError

from conftest import messages_at
from theme_config import (
    DEFAULT_ACCENT_COLORS,
    ThemeConfig,
    ThemeMode,
    load_config,
    save_config,
)


class TestThemeConfig:
    def test_defaults(self):
        config = ThemeConfig()
        assert [entry.name for entry in config.schedule] == ["Day", "Night"]
        assert config.accent_colors == dict(DEFAULT_ACCENT_COLORS)
        assert config.restart_delay == 2.0

    def test_is_frozen(self):
        config = ThemeConfig()
        with pytest.raises(ValidationError):
            config.restart_delay = 5

    def test_schedule_is_tuple(self):
        config = ThemeConfig(schedule=[{"name": "Evening", "time": "18:00", "mode": "Dark"}])
        assert isinstance(config.schedule, tuple)
        assert isinstance(ThemeConfig().schedule, tuple)

    def test_mode_is_case_insensitive(self):
        config = ThemeConfig(schedule=[{"name": "Evening", "time": "18:00", "mode": "dark"}])
        assert config.schedule[0].mode is ThemeMode.DARK

    def test_unknown_color_override_rejected(self):
        with pytest.raises(ValidationError):
            ThemeConfig(accent_colors={"Magenta": 1})

    def test_color_override_merges_with_defaults(self):
        config = ThemeConfig(accent_colors={"blue": 0xFF112233})
        assert config.accent_colors["Blue"] == 0xFF112233
        assert config.accent_colors["Red"] == DEFAULT_ACCENT_COLORS["Red"]

    def test_per_mode_defaults(self):
        config = ThemeConfig(light_accent="Yellow", dark_wallpaper="night.jpg")
        assert config.accent_for(ThemeMode.LIGHT) == "Yellow"
        assert config.accent_for(ThemeMode.DARK) is None
        assert config.wallpaper_for(ThemeMode.DARK) == "night.jpg"


class TestLoadConfig:
    def test_missing_file_falls_back(self, tmp_path, log_records):
        config = load_config(tmp_path / "missing.json")
        assert config == ThemeConfig()
        assert messages_at(log_records, "WARNING")

    def test_malformed_json_falls_back(self, tmp_path, log_records):
        path = tmp_path / "config.json"
        path.write_text("{not json", encoding="utf-8")
        assert load_config(path) == ThemeConfig()
        assert messages_at(log_records, "WARNING")

    def test_invalid_structure_falls_back(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"schedule": [{"name": "x"}]}), encoding="utf-8")
        assert load_config(path) == ThemeConfig()

    @pytest.mark.parametrize("color", [None, [1], True, "blue", 1.5])
    def test_non_numeric_color_falls_back(self, tmp_path, color, log_records):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"accent_colors": {"Red": color}}), encoding="utf-8")
        assert load_config(path) == ThemeConfig()
        assert messages_at(log_records, "WARNING")

    def test_valid_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(
            json.dumps(
                {
                    "dark_accent": "Purple",
                    "schedule": [
                        {"name": "Morning", "time": "06:30", "mode": "Light"},
                        {"name": "Late", "time": "23:00", "mode": "Dark", "enabled": False},
                    ],
                }
            ),
            encoding="utf-8",
        )
        config = load_config(path)
        assert config.dark_accent == "Purple"
        assert [entry.time for entry in config.schedule] == ["06:30", "23:00"]
        assert config.schedule[1].enabled is False

    def test_bad_time_does_not_invalidate_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(
            json.dumps({"schedule": [{"name": "Odd", "time": "25:99", "mode": "Dark"}]}),
            encoding="utf-8",
        )
        assert load_config(path).schedule[0].time == "25:99"


class TestSaveConfig:
    def test_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "config.json"
        assert save_config(ThemeConfig(), path) is True
        assert load_config(path) == ThemeConfig()

    def test_does_not_overwrite(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{}", encoding="utf-8")
        assert save_config(ThemeConfig(), path) is False
        assert path.read_text(encoding="utf-8") == "{}"
