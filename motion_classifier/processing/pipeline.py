from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..exceptions import EmptyInputError, WindowSizeMismatchError
from ..motion_config import MotionConfig, get_motion_config
from .csv_io import parse_combined
from .normalizer import normalize, value_range
from .repair import WindowLike, as_window, repair_zeros

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedWindow:
    raw: np.ndarray
    repaired: np.ndarray
    normalized: np.ndarray

    @property
    def samples(self) -> int:
        return int(self.normalized.shape[0])


class PreprocessingPipeline:
    """Repair -> size check -> normalize, shared by live capture and CSV uploads."""

    def __init__(self, config: Optional[MotionConfig] = None) -> None:
        self.config = config or get_motion_config()

    @property
    def target_samples(self) -> int:
        return int(self.config.window.target_samples)

    def prepare(self, samples: WindowLike) -> PreparedWindow:
        raw = as_window(samples)
        if raw.shape[0] == 0:
            raise EmptyInputError("No samples to preprocess")
        repaired = repair_zeros(raw)
        logger.debug("Zero repair: %d -> %d samples", raw.shape[0], repaired.shape[0])
        if repaired.shape[0] != self.target_samples:
            raise WindowSizeMismatchError(self.target_samples, int(repaired.shape[0]))
        normalized = normalize(repaired, self.config.normalization)
        logger.debug(
            "Normalized window: first=%s range=%s mean=%.6f",
            normalized[0].tolist(),
            value_range(normalized),
            float(normalized.mean()),
        )
        return PreparedWindow(raw=raw, repaired=repaired, normalized=normalized)

    def prepare_live(self, samples: WindowLike) -> PreparedWindow:
        """Prepare a buffer snapshot; inputs longer than the target are truncated to the first window."""
        raw = as_window(samples)
        return self.prepare(raw[: self.target_samples])

    def prepare_csv(self, text: str) -> PreparedWindow:
        """Parse combined CSV text; the repaired rows must form exactly one window."""
        rows = parse_combined(text)
        return self.prepare(rows)
