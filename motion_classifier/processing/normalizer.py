from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

from ..exceptions import ConfigurationError
from ..motion_config import CHANNELS, NormalizationConfig
from .repair import WindowLike, as_window

logger = logging.getLogger(__name__)


def load_ranges(path: Path) -> NormalizationConfig:
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid normalization range file {path}: {exc}") from exc
    if not isinstance(payload, dict) or "min" not in payload or "max" not in payload:
        raise ConfigurationError(f"Unexpected normalization range format: {path}")
    min_raw = payload["min"]
    max_raw = payload["max"]
    try:
        if isinstance(min_raw, dict):
            min_raw = [min_raw[c] for c in CHANNELS]
        if isinstance(max_raw, dict):
            max_raw = [max_raw[c] for c in CHANNELS]
        min_values = tuple(float(v) for v in min_raw)
        max_values = tuple(float(v) for v in max_raw)
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid normalization ranges in {path}: {exc}") from exc
    return NormalizationConfig(min_values=min_values, max_values=max_values)


def write_ranges(ranges: NormalizationConfig, target_dir: Path) -> Path:
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / "normalization_ranges.json"
    payload: Dict[str, Dict[str, float]] = {
        "min": dict(zip(CHANNELS, ranges.min_values)),
        "max": dict(zip(CHANNELS, ranges.max_values)),
    }
    target.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return target


def normalize(samples: WindowLike, ranges: Optional[NormalizationConfig] = None) -> np.ndarray:
    """Fixed-range min-max scaling of every channel into [-1, 1].

    NaN maps to 0, +inf to 1 and -inf to -1; finite values are clamped. The
    ranges are calibration constants and are never derived from ``samples``.
    """
    ranges = ranges or NormalizationConfig()
    window = as_window(samples)
    lo = np.asarray(ranges.min_values, dtype=np.float64)
    hi = np.asarray(ranges.max_values, dtype=np.float64)

    nan_mask = np.isnan(window)
    inf_mask = np.isinf(window)
    if nan_mask.any():
        logger.warning("NaN value detected in %d cells, replacing with 0", int(nan_mask.sum()))
    if inf_mask.any():
        logger.warning("Infinite value detected in %d cells, clamping", int(inf_mask.sum()))

    with np.errstate(invalid="ignore", over="ignore"):
        scaled = 2.0 * (window - lo) / (hi - lo) - 1.0
    out = np.clip(scaled, -1.0, 1.0)
    out[nan_mask] = 0.0
    out[inf_mask] = np.sign(window[inf_mask])
    return out.astype(np.float32)


def value_range(window: np.ndarray) -> List[float]:
    if window.size == 0:
        return [0.0, 0.0]
    return [float(np.min(window)), float(np.max(window))]
