import json
from pathlib import Path

import pytest

from comfort import ComfortBounds
from models import Metric
from settings import DashboardConfig, SettingsManager, load_config


def test_defaults_when_file_missing(tmp_path: Path) -> None:
    config = load_config(SettingsManager(tmp_path / "settings.json"))

    assert config.base_url == "https://clima-backend-xi.vercel.app"
    assert config.window_options == (10, 30, 60, 120)
    assert config.window_minutes == 10
    assert config.refresh_interval_secs == 20
    assert config.comfort_bounds[Metric.TEMPERATURE] == ComfortBounds(18, 22)
    assert config.log_level == "INFO"


def test_stored_values_override_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps(
            {
                "base_url": "http://localhost:3000",
                "window_options": [5, 10, 30],
                "window_minutes": 30,
                "refresh_interval_secs": 10,
                "comfort_bounds": {"light": [200, 500]},
                "log_level": "debug",
            }
        ),
        encoding="utf-8",
    )

    config = load_config(SettingsManager(path))

    assert config.base_url == "http://localhost:3000"
    assert config.window_options == (5, 10, 30)
    assert config.window_minutes == 30
    assert config.refresh_interval_secs == 10
    assert config.comfort_bounds[Metric.LIGHT] == ComfortBounds(200, 500)
    assert config.comfort_bounds[Metric.HUMIDITY] == ComfortBounds(40, 60)
    assert config.log_level == "DEBUG"


def test_stored_window_not_offered_falls_back_to_first_option(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"window_options": [5, 10, 30], "window_minutes": 120}), encoding="utf-8")

    assert load_config(SettingsManager(path)).window_minutes == 5


def test_corrupt_file_is_treated_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")

    settings = SettingsManager(path)

    assert settings.get("window_minutes") is None
    assert load_config(settings).window_minutes == 10


def test_save_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    settings = SettingsManager(path)
    settings.set("window_minutes", 60)
    settings.save()

    assert SettingsManager(path).get("window_minutes") == 60


def test_invalid_config_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        DashboardConfig(window_options=())
    with pytest.raises(ValueError):
        DashboardConfig(window_minutes=45)
    with pytest.raises(ValueError):
        DashboardConfig(refresh_interval_secs=0)

    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"comfort_bounds": {"temperature": [30, 10]}}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(SettingsManager(path))


def test_non_object_file_is_treated_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("[10, 30]", encoding="utf-8")

    assert SettingsManager(path).get("window_minutes") is None


def test_save_leaves_untouched_file_alone(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text('{"window_minutes":30}', encoding="utf-8")

    settings = SettingsManager(path)
    settings.set("window_minutes", 30)
    settings.save()

    assert path.read_text(encoding="utf-8") == '{"window_minutes":30}'


def test_save_creates_file_with_defaults_on_first_run(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"

    SettingsManager(path).save()

    assert json.loads(path.read_text(encoding="utf-8")) == {}
    assert not (tmp_path / "settings.json.tmp").exists()
