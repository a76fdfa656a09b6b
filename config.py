from __future__ import annotations

import json
import os

from dotenv import load_dotenv

from matching import DEFAULT_WEIGHTS, MODEL_VERSION, MatchWeights

load_dotenv()


def get_model_version() -> str:
    return os.getenv("MATCH_MODEL_VERSION", "").strip() or MODEL_VERSION


def get_deadline_seconds() -> float | None:
    raw = os.getenv("MATCH_DEADLINE_SECONDS", "").strip()
    if not raw:
        return None
    value = float(raw)
    if value <= 0:
        raise ValueError(f"MATCH_DEADLINE_SECONDS must be positive, got {raw}")
    return value


def get_match_weights() -> MatchWeights:
    raw = os.getenv("MATCH_WEIGHTS", "").strip()
    if not raw:
        return DEFAULT_WEIGHTS
    try:
        values = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"MATCH_WEIGHTS is not valid JSON: {raw}") from exc
    if not isinstance(values, dict):
        raise ValueError("MATCH_WEIGHTS must be a JSON object")
    return MatchWeights.from_dict(values)
