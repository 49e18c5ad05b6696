"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  - Static defaults checked into the repo
#   2. .env file           - Local developer overrides (not committed)
#   3. Environment vars    - Set at deploy time
#
# load_config() reads the YAML file first, then deep-merges values from
# Settings on top.  Only settings that were explicitly provided through
# .env or the environment override the YAML; untouched defaults do not.
#
#   base = {"resolver": {"auto_accept_threshold": 80}}
#   overrides = {"resolver": {"inter_candidate_delay": 0.0}}
#   result = {"resolver": {"auto_accept_threshold": 80, "inter_candidate_delay": 0.0}}
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path
from typing import Any

import yaml

from src.config.settings import Settings
from src.utils.errors import ConfigurationError

# YAML section -> Settings fields it holds.
_SECTIONS: dict[str, tuple[str, ...]] = {
    "app": ("app_host", "app_port", "app_env", "cors_origins"),
    "spotify": (
        "spotify_api_base_url",
        "spotify_market",
        "spotify_search_limit",
        "spotify_timeout_seconds",
        "spotify_max_concurrency",
    ),
    "resolver": (
        "auto_accept_threshold",
        "min_match_score",
        "shortlist_size",
        "inter_candidate_delay",
    ),
    "playlist": ("default_track_count", "max_tracks_per_artist", "playlist_batch_size"),
    "ocr": ("ocr_min_confidence", "max_upload_bytes"),
    "runs": ("max_retained_runs",),
    "logging": ("log_level",),
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.
        settings: Pre-built settings; constructed from the environment when omitted.

    Returns:
        Fully resolved configuration dictionary keyed by section.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
        if not isinstance(yaml_config, dict):
            raise ConfigurationError(f"{path} must contain a mapping of sections")
    else:
        yaml_config = {}

    if settings is None:
        settings = Settings()
    explicit = settings.model_fields_set

    env_overrides: dict[str, dict[str, Any]] = {}
    for section, fields in _SECTIONS.items():
        values = {name: getattr(settings, name) for name in fields if name in explicit}
        if values:
            env_overrides[section] = values

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def settings_from_config(config: dict) -> Settings:
    """Flatten a merged config dict back into a validated Settings object."""
    flat: dict[str, Any] = {}
    for section, fields in _SECTIONS.items():
        values = config.get(section) or {}
        flat.update({name: values[name] for name in fields if name in values})
    return Settings(**flat)


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
