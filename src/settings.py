"""Static configuration for autolink.

All user-editable settings (links, card masking switches, lookup limits,
logging) live in a single JSON file for quick edits without touching Python.
"""

import json
import os

from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# AUTOLINK_CONFIG points at an alternative config file (e.g. per deployment).
CONFIG_PATH = os.getenv("AUTOLINK_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")


def load_json_config() -> dict:
    """Load the config file with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def config_mtime() -> float:
    """Modification time of the config file, used to detect edits."""

    return os.path.getmtime(CONFIG_PATH)


_CONFIG = load_json_config()

# Expose the raw config; core.config.build_config compiles it.
CONFIG = _CONFIG

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
