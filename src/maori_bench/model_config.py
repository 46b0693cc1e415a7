"""
Model Configuration

Resolves requested model names against models.config.json.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from maori_bench.domain.entities import ModelSpec

logger = logging.getLogger(__name__)


def load_models_config(file_path: str | Path) -> list[dict]:
    """
    Load model entries from a models config file

    A missing file yields an empty list; an unreadable one is logged and
    treated the same way, so requested names fall back to provider ids.

    Args:
        file_path: Path to models.config.json

    Returns:
        list[dict]: Entries that carry a string provider_id
    """
    path = Path(file_path)
    if not path.exists():
        return []
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable model config %s: %s", path, e)
        return []

    if not isinstance(data, list):
        logger.warning("Ignoring model config %s: expected a JSON array", path)
        return []

    return [
        entry for entry in data
        if isinstance(entry, dict) and isinstance(entry.get("provider_id"), str)
    ]


def resolve_models(requested: list[str], entries: list[dict[str, Any]]) -> list[ModelSpec]:
    """
    Map requested names to model specs

    Each requested name matches an entry by name or provider_id; unmatched
    names are used directly as provider ids.

    Args:
        requested: Model names or provider ids, in run order
        entries: Entries from load_models_config

    Returns:
        list[ModelSpec]: Resolved models in request order
    """
    models = []
    for name in requested:
        hit = next(
            (e for e in entries if e.get("name") == name or e.get("provider_id") == name),
            None,
        )
        if hit is not None:
            params = hit.get("params")
            models.append(ModelSpec(
                name=hit.get("name") or hit["provider_id"],
                provider_id=hit["provider_id"],
                params=dict(params) if isinstance(params, dict) else None,
            ))
        else:
            models.append(ModelSpec(name=name, provider_id=name))
    return models


def parse_model_list(models_csv: str) -> list[str]:
    """Split a comma-separated --models value"""
    return [m.strip() for m in models_csv.split(",") if m.strip()]
