from __future__ import annotations

import os
from pathlib import Path
import tomllib

from dotenv import load_dotenv

DEFAULT_CONFIG_PATH = Path("~/.config/fiply/config.toml").expanduser()

DEFAULTS = {
    "history": {
        "lookback_days": 7.0,
        "max_pages": 100,
        "retry_attempts": 3,
        "retry_delay_ms": 100,
        "allow_partial": False,
    },
    "spotify": {
        "search_delay_ms": 50,
    },
    "playlists": {
        "most_aired": "4Qghjo06iuI9rhqtzE4Ved",
        "played_once": "0oBom1VXOlWovYSLupNmrS",
        "top_n": 150,
        "limit": 100,
    },
}


def load_config(path: Path | None = None) -> dict:
    """
    Read the TOML config and fill in defaults per section. A missing file
    is fine: everything has a default or a CLI flag.
    """
    cfg_path = path or DEFAULT_CONFIG_PATH
    cfg: dict = {}
    if cfg_path.exists():
        with cfg_path.open("rb") as f:
            cfg = tomllib.load(f)

    for section, values in DEFAULTS.items():
        merged = dict(values)
        merged.update(cfg.get(section, {}))
        cfg[section] = merged

    # Expand ~ in path-like settings
    spotify = cfg["spotify"]
    if isinstance(spotify.get("cache_path"), str):
        spotify["cache_path"] = os.path.expanduser(spotify["cache_path"])

    return cfg


def load_env() -> None:
    """Load .env from the working directory, then from next to the package."""
    load_dotenv()

    env_file = Path(__file__).resolve().parent.parent / ".env"
    if env_file.exists():
        load_dotenv(env_file)
