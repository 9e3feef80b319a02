from pathlib import Path
from typing import Optional, Union

import yaml

from touch_reset.controller.reset import ResetTimings


def get_config_dir() -> Path:
    """
    Returns the folder holding the bundled configs, assuming this file lives at:
    <package>/touch_reset/config_loader.py
    The folder ships as package data, so this works from an install too.
    """
    return Path(__file__).resolve().parent / "config"

def resolve_config_path(config: Union[str, Path]) -> Path:
    """
    A bare file name is looked up in the bundled config folder first, then in
    the working directory. Anything with a folder in it is used as a path.
    """
    path = Path(config)
    if path.is_absolute() or len(path.parts) > 1:
        return path

    bundled = get_config_dir() / path
    if bundled.exists():
        return bundled
    return path

def load_config(config_name: Union[str, Path] = "reset_default.yaml",
                config_dir: Optional[Union[str, Path]] = None) -> dict:
    """
    Loads a YAML config. config_name is a bundled config name or a path
    (see resolve_config_path); with config_dir it is a name in that folder.

    Returns:
        config (dict): parsed YAML
    """
    if config_dir is None:
        config_path = resolve_config_path(config_name)
    else:
        config_path = Path(config_dir) / config_name

    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path, "r") as f:
        config = yaml.safe_load(f)

    if not isinstance(config, dict):
        raise ValueError(f"Config file did not load as a dict: {config_path}")

    return config

def require_keys(config: dict, required: dict) -> None:
    """
    required format:
      {
        "reset": ["timeout_s", "debounce_s"],
        "touch": ["baud"]
      }
    """
    for section, keys in required.items():
        if not isinstance(config.get(section), dict):
            raise KeyError(f"Missing config section: '{section}'")
        for k in keys:
            if k not in config[section]:
                raise KeyError(f"Missing config key: '{section}.{k}'")

def timings_from_config(config: dict) -> ResetTimings:
    """
    Builds ResetTimings from the `reset` and `touch` sections.
    Keys that are missing (or null) keep their defaults.
    """
    reset_cfg = config.get("reset") or {}
    touch_cfg = config.get("touch") or {}

    values = {
        "timeout_s": reset_cfg.get("timeout_s"),
        "dry_run_timeout_s": reset_cfg.get("dry_run_timeout_s"),
        "debounce_s": reset_cfg.get("debounce_s"),
        "poll_interval_s": reset_cfg.get("poll_interval_s"),
        "touch_settle_s": touch_cfg.get("settle_s"),
    }
    return ResetTimings(**{k: float(v) for k, v in values.items() if v is not None})
