from __future__ import annotations

import logging
import math
import threading
from typing import List, Optional, Sequence

import numpy as np

from ..motion_config import NUM_CHANNELS

logger = logging.getLogger(__name__)


def is_valid_sample(sample: Sequence[float]) -> bool:
    if len(sample) != NUM_CHANNELS:
        return False
    try:
        return all(math.isfinite(float(v)) for v in sample)
    except (TypeError, ValueError):
        return False


class SampleBuffer:
    """Accumulates six-channel samples from the capture loop.

    Every mutation and every read-then-act sequence holds ``_lock`` so a
    snapshot never observes a half-applied append or clear.
    """

    def __init__(self, target_samples: int = 700) -> None:
        self.target_samples = int(target_samples)
        self._samples: List[List[float]] = []
        self._lock = threading.Lock()

    def append(self, sample: Sequence[float]) -> bool:
        if not is_valid_sample(sample):
            logger.warning("Invalid sensor data detected, skipping sample: %s", list(sample))
            return False
        row = [float(v) for v in sample]
        with self._lock:
            self._samples.append(row)
        return True

    def append_if_below_target(self, sample: Sequence[float]) -> bool:
        """Append only while the buffer holds fewer than ``target_samples``."""
        if not is_valid_sample(sample):
            logger.warning("Invalid sensor data detected, skipping sample: %s", list(sample))
            return False
        row = [float(v) for v in sample]
        with self._lock:
            if len(self._samples) >= self.target_samples:
                return False
            self._samples.append(row)
        return True

    def extend(self, samples: Sequence[Sequence[float]]) -> int:
        rows = []
        for sample in samples:
            if is_valid_sample(sample):
                rows.append([float(v) for v in sample])
            else:
                logger.warning("Invalid sensor data detected, skipping sample: %s", list(sample))
        with self._lock:
            self._samples.extend(rows)
        return len(rows)

    def replace(self, samples: Sequence[Sequence[float]]) -> int:
        rows = [[float(v) for v in sample] for sample in samples if is_valid_sample(sample)]
        with self._lock:
            self._samples = rows
        return len(rows)

    def size(self) -> int:
        with self._lock:
            return len(self._samples)

    def __len__(self) -> int:
        return self.size()

    def is_full(self) -> bool:
        return self.size() >= self.target_samples

    def snapshot_window(self, n: Optional[int] = None) -> np.ndarray:
        """Copy of the first ``n`` samples (default ``target_samples``), shape (k, 6) with k <= n."""
        n = self.target_samples if n is None else int(n)
        with self._lock:
            rows = [list(r) for r in self._samples[:n]]
        if not rows:
            return np.empty((0, NUM_CHANNELS), dtype=np.float64)
        return np.asarray(rows, dtype=np.float64)

    def take_window_if_ready(self, n: Optional[int] = None) -> Optional[np.ndarray]:
        """Atomically check the size and copy the first ``n`` samples; ``None`` while pending."""
        n = self.target_samples if n is None else int(n)
        with self._lock:
            if len(self._samples) < n:
                return None
            rows = [list(r) for r in self._samples[:n]]
        return np.asarray(rows, dtype=np.float64)

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()
