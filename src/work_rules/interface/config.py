"""
Per-directory settings for the work-rules CLI.

Kept as `.work_rules_config.json` beside the rule books it describes, so
each rules directory remembers its own default rule book and tick pace.
The file is hand-editable; unreadable or mistyped values fall back to
the defaults rather than stopping the CLI.
"""

import json
import logging
from pathlib import Path
from typing import TypedDict

from ..systems.scheduler import DEFAULT_TICK_INTERVAL

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".work_rules_config.json"


class Config(TypedDict, total=False):
    rules_dir: str
    tick_interval: int  # Host ticks between periodic passes
    log_level: str
    last_rulebook: str | None  # Opened when a command names no rule book


DEFAULT_CONFIG: Config = {
    "rules_dir": "rulebooks",
    "tick_interval": DEFAULT_TICK_INTERVAL,
    "log_level": "INFO",
    "last_rulebook": None,
}


def get_config_path(rules_dir: Path | str = "rulebooks") -> Path:
    return Path(rules_dir) / CONFIG_FILENAME


def load_config(rules_dir: Path | str = "rulebooks") -> Config:
    """Settings for a rules directory, layered over the defaults."""
    path = get_config_path(rules_dir)
    config = DEFAULT_CONFIG.copy()

    if not path.exists():
        return config

    try:
        with open(path, "r", encoding="utf-8") as f:
            saved = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        logger.warning(f"Ignoring unreadable settings in {path}: {e}")
        return config

    if not isinstance(saved, dict):
        logger.warning(f"Ignoring settings in {path}: expected an object")
        return config

    config.update(saved)
    return config


def tick_interval(config: Config) -> int:
    """The configured pass interval, or the default if it is not a positive int."""
    value = config.get("tick_interval")
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    logger.warning(f"Invalid tick_interval {value!r}; using {DEFAULT_TICK_INTERVAL}")
    return DEFAULT_TICK_INTERVAL


def save_config(config: Config, rules_dir: Path | str = "rulebooks") -> bool:
    """Write settings for a rules directory. Returns True on success."""
    path = get_config_path(rules_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        return True
    except IOError as e:
        logger.error(f"Could not write settings to {path}: {e}")
        return False


def set_last_rulebook(rulebook_id: str | None, rules_dir: Path | str = "rulebooks") -> None:
    """Make a rule book the one later commands open by default."""
    config = load_config(rules_dir)
    config["last_rulebook"] = rulebook_id
    save_config(config, rules_dir)
