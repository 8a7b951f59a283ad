"""Configuration for dispatch ingestion.

Static settings come from json/dispatch.json (or the file named by
DISPATCH_CONFIG_PATH). Secrets and deployment paths come from the environment.
"""

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).parent.resolve()
CONFIG_PATH = Path(os.getenv("DISPATCH_CONFIG_PATH", BASE_DIR / "json" / "dispatch.json"))

GOOGLE_MAPS_API_KEY = os.getenv("GOOGLE_MAPS_API_KEY", "")
DISPATCH_SHEET_ID = os.getenv("DISPATCH_SHEET_ID", "")
DISPATCH_SHEET_NAME = os.getenv("DISPATCH_SHEET_NAME", "Jobs")

DEFAULT_CONFIG = {
    "allowed_senders": [],
    "days_back": 7,
    "regional_suffix": ", UK",
    "travel_mode": "driving",
    "placeholder_tokens": ["tbc", "unknown", "to be confirmed"],
    "sheet_headers": {},
}


def load_dispatch_config(path=None) -> dict:
    """Load the JSON config merged over DEFAULT_CONFIG.

    A missing or malformed file logs a warning and yields the defaults.
    """
    config_path = Path(path) if path else CONFIG_PATH
    config = dict(DEFAULT_CONFIG)
    try:
        with config_path.open("r", encoding="utf-8") as f:
            loaded = json.load(f)
    except FileNotFoundError:
        logger.warning("Dispatch config not found at %s, using defaults", config_path)
        return config
    except json.JSONDecodeError as e:
        logger.warning("Invalid JSON in %s: %s (line %s), using defaults", config_path, e.msg, e.lineno)
        return config

    if not isinstance(loaded, dict):
        logger.warning("Dispatch config %s is not a JSON object, using defaults", config_path)
        return config

    config.update({k: v for k, v in loaded.items() if k in DEFAULT_CONFIG})
    config["allowed_senders"] = [s.strip().lower() for s in config["allowed_senders"] if s and s.strip()]
    return config
