from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from listenstats import config

SETTINGS_PATH = config.METADATA_DIR / "settings.json"


def _default_settings() -> dict[str, Any]:
    return {
        "display": {
            "default_period": "month",
            "heatmap_weeks": config.DEFAULT_CONFIG.heatmap_weeks,
            "top_list_size": 10,
        },
        "concerts": {
            "location": None,
            "radius_miles": 100,
        },
        "paths": {
            "metadata_dir": str(config.METADATA_DIR),
        },
    }


def _deep_merge(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merged[key] = _deep_merge(base[key], value)
        else:
            merged[key] = value
    return merged


def load_settings(path: Path | None = None) -> dict[str, Any]:
    path = path or SETTINGS_PATH
    defaults = _default_settings()
    if not path.exists():
        return defaults
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        return defaults
    if not isinstance(data, dict):
        return defaults
    return _deep_merge(defaults, data)


def update_settings(patch: dict[str, Any], path: Path | None = None) -> dict[str, Any]:
    path = path or SETTINGS_PATH
    updated = _deep_merge(load_settings(path), patch)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(updated, indent=2, sort_keys=True, ensure_ascii=True) + "\n",
        encoding="utf-8",
    )
    return updated
