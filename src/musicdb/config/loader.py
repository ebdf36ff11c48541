from copy import deepcopy
from pathlib import Path
from typing import Any, Dict

import yaml

DEFAULT_CONFIG_PATH = Path("musicdb.config.yaml")

BASE_CONFIG: Dict[str, Dict[str, Any]] = {
    "storage": {
        "database_url": "sqlite:///musicdb.sqlite",
    },
    "query": {
        "list_timeout_seconds": 3.0,
        "default_page_size": 20,
    },
}


def _merge_sections(config: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay user sections on the built-in defaults, section by section."""
    merged = deepcopy(BASE_CONFIG)
    for section, values in config.items():
        if section in merged:
            if values is not None and not isinstance(values, dict):
                raise ValueError(f"Config section '{section}' must be a dictionary")
            merged[section].update(values or {})
        else:
            merged[section] = values
    return merged


def load_config(path: Path | None = None) -> Dict[str, Any]:
    """
    Load musicdb configuration from a YAML file.

    Args:
        path: Optional path to the config file. Defaults to musicdb.config.yaml;
            when the default file is absent the built-in defaults are used.

    Returns:
        Configuration dictionary with defaults filled in

    Raises:
        FileNotFoundError: If an explicitly given config file doesn't exist
        ValueError: If the document is not a mapping
    """
    cfg_path = path or DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        if path is not None:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        return deepcopy(BASE_CONFIG)

    with cfg_path.open("r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError("Config must be a dictionary")
    return _merge_sections(config)


def get_database_url(config: Dict[str, Any]) -> str:
    return config["storage"]["database_url"]


def get_list_timeout(config: Dict[str, Any]) -> float:
    timeout = float(config["query"]["list_timeout_seconds"])
    if timeout <= 0:
        raise ValueError("query.list_timeout_seconds must be positive")
    return timeout


def get_default_page_size(config: Dict[str, Any]) -> int:
    return int(config["query"]["default_page_size"])
