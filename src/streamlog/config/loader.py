from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List

import yaml

DEFAULT_CONFIG_PATH = Path("streamlog.config.yaml")

DEFAULT_FIELDS: List[str] = [
    "created",
    "ip",
    "author",
    "author_meta.user_login",
    "author_role",
    "summary",
]

ARRAY_POLICIES = ("first", "index")
UNKNOWN_FORMAT_POLICIES = ("ignore", "error")

BASE_CONFIG: Dict[str, Dict[str, Any]] = {
    "store": {
        "url": "sqlite:///stream.db",
    },
    "query": {
        "default_fields": list(DEFAULT_FIELDS),
        "array_policy": "first",
        "unknown_format": "ignore",
    },
    "alerts": {
        "ajax_url": None,
        "timeout_seconds": 20,
        "cookies": {},
    },
    "logging": {
        "level": "WARNING",
    },
}


def _merge_sections(user_config: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Overlay user sections on the built-in defaults, one level deep."""
    merged = deepcopy(BASE_CONFIG)
    for section, values in user_config.items():
        if values is None:
            continue
        if not isinstance(values, dict):
            raise ValueError(f"Config section '{section}' must be a dictionary")
        merged.setdefault(section, {}).update(values)
    return merged


def _validate(config: Dict[str, Dict[str, Any]]) -> None:
    query = config["query"]
    if query.get("array_policy") not in ARRAY_POLICIES:
        raise ValueError(
            f"query.array_policy must be one of {', '.join(ARRAY_POLICIES)}, got {query.get('array_policy')!r}"
        )
    if query.get("unknown_format") not in UNKNOWN_FORMAT_POLICIES:
        raise ValueError(
            f"query.unknown_format must be one of {', '.join(UNKNOWN_FORMAT_POLICIES)}, "
            f"got {query.get('unknown_format')!r}"
        )
    fields = query.get("default_fields")
    if not isinstance(fields, list) or not fields or not all(isinstance(f, str) for f in fields):
        raise ValueError("query.default_fields must be a non-empty list of strings")
    if not isinstance(config["alerts"].get("cookies") or {}, dict):
        raise ValueError("alerts.cookies must be a dictionary")


def load_config(path: Path | None = None) -> Dict[str, Any]:
    """
    Load streamlog configuration from YAML, merged over built-in defaults.

    Args:
        path: Optional explicit config path. Defaults to ./streamlog.config.yaml

    Returns:
        Dictionary with store, query, alerts and logging sections

    Raises:
        FileNotFoundError: If an explicit path does not exist
        ValueError: If the file is not a mapping or a section is malformed
    """
    cfg_path = path or DEFAULT_CONFIG_PATH
    user_config: Dict[str, Any] = {}
    if cfg_path.exists():
        with cfg_path.open("r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
        if loaded is not None and not isinstance(loaded, dict):
            raise ValueError("Config file must contain a dictionary")
        user_config = loaded or {}
    elif path is not None:
        raise FileNotFoundError(f"Config file not found: {cfg_path}")

    config = _merge_sections(user_config)
    _validate(config)
    return config


def get_store_url(config: Dict[str, Any]) -> str:
    return config.get("store", {}).get("url") or BASE_CONFIG["store"]["url"]


def get_default_fields(config: Dict[str, Any]) -> List[str]:
    return list(config.get("query", {}).get("default_fields") or DEFAULT_FIELDS)
