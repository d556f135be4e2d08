"""Tests for TOML config loading."""
from fiply.config import DEFAULTS, load_config


def test_missing_file_gives_defaults(tmp_path):
    cfg = load_config(tmp_path / "nope.toml")
    assert cfg["history"] == DEFAULTS["history"]
    assert cfg["playlists"]["top_n"] == 150


def test_file_overrides_defaults(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        "[history]\n"
        "lookback_days = 3\n"
        "retry_attempts = 5\n"
        "[fip]\n"
        "station_id = 64\n"
        "[spotify]\n"
        "cache_path = \"~/tok\"\n"
    )
    cfg = load_config(path)
    assert cfg["history"]["lookback_days"] == 3
    assert cfg["history"]["retry_attempts"] == 5
    # untouched keys keep their default
    assert cfg["history"]["max_pages"] == 100
    assert cfg["fip"]["station_id"] == 64
    assert not cfg["spotify"]["cache_path"].startswith("~")
    assert cfg["spotify"]["search_delay_ms"] == 50


def test_defaults_not_mutated(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[playlists]\ntop_n = 10\n")
    load_config(path)
    assert DEFAULTS["playlists"]["top_n"] == 150
