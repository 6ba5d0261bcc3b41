# MovieSync test scripts
from __future__ import annotations

import json

import pytest

from ms_platform.config_base import DEFAULT_CFG, config_path, load_config, save_config
from ms_platform.sync import InvalidStatus, MovieStatus, SyncSettings


def test_defaults_when_no_file(config_base) -> None:
    cfg = load_config()
    assert cfg == DEFAULT_CFG
    assert config_path() == config_base / "config.json"


def test_user_values_merge_over_defaults(config_base) -> None:
    (config_base / "config.json").write_text(json.dumps({"sync": {"seek_tolerance": 3.5}}), encoding="utf-8")
    cfg = load_config()
    assert cfg["sync"]["seek_tolerance"] == 3.5
    assert cfg["sync"]["debounce_ms"] == 500
    assert cfg["publish"]["timeout"] == 5.0


def test_corrupt_file_falls_back_to_defaults(config_base) -> None:
    (config_base / "config.json").write_text("{not json", encoding="utf-8")
    assert load_config() == DEFAULT_CFG


def test_save_then_load(config_base) -> None:
    cfg = load_config()
    cfg["publish"]["url"] = "http://localhost:9000/msg"
    save_config(cfg)
    assert load_config()["publish"]["url"] == "http://localhost:9000/msg"
    assert not list(config_base.glob("*.tmp"))


def test_sync_settings_from_config() -> None:
    s = SyncSettings.from_config({"sync": {"debounce_ms": 250, "check_interval": "bogus", "check_interval_x": 1}})
    assert s.debounce == pytest.approx(0.25)
    assert s.seek_debounce == pytest.approx(0.5)
    assert s.check_interval == 10.0
    assert s.extra == {"check_interval_x": 1}

    assert SyncSettings.from_config(None) == SyncSettings()
    assert SyncSettings.from_config({"sync": {"check_interval": 0}}).check_interval == pytest.approx(0.05)


def test_movie_status_validation() -> None:
    st = MovieStatus.from_mapping({"seek": "12.5", "playing": 1})
    assert st == MovieStatus(seek=12.5, rate=1.0, playing=True)
    assert st.replace(rate=2).rate == 2.0
    with pytest.raises(InvalidStatus):
        MovieStatus.from_mapping({"seek": -1})
    with pytest.raises(InvalidStatus):
        MovieStatus.from_mapping({"rate": "fast"})
    with pytest.raises(ValueError):
        st.replace(rate=-1)
