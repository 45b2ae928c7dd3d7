import json
import os
from typing import Any, Dict

DEFAULT_PROFILE_CONFIG = os.path.join(os.path.dirname(__file__), "profiles.json")


def load_profile_config(config_path: str = None) -> Dict[str, Any]:
    """Load exercise profile config from JSON file."""
    if config_path is None:
        config_path = DEFAULT_PROFILE_CONFIG
    with open(config_path, "r") as f:
        return json.load(f)
