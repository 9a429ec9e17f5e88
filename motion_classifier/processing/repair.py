from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from ..motion_config import CHANNELS, NUM_CHANNELS

logger = logging.getLogger(__name__)

WindowLike = Union[np.ndarray, Sequence[Sequence[float]]]


def as_window(samples: WindowLike) -> np.ndarray:
    """Coerce samples into a float64 (N, 6) array."""
    window = np.asarray(samples, dtype=np.float64)
    if window.size == 0:
        return np.empty((0, NUM_CHANNELS), dtype=np.float64)
    if window.ndim != 2 or window.shape[1] < NUM_CHANNELS:
        raise ValueError(f"Expected samples shaped (N, {NUM_CHANNELS}), got {window.shape}")
    return window[:, :NUM_CHANNELS]


def interpolate_marked(column: np.ndarray, marked: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Fill ``marked`` entries of a 1-D column by index-weighted linear interpolation.

    Leading gaps take the first valid value and trailing gaps the last one.
    Returns the filled column and the mask of entries still unresolved, which
    is all of ``marked`` when the column has no valid value.
    """
    out = column.copy()
    if not marked.any():
        return out, marked.copy()
    valid_idx = np.flatnonzero(~marked & np.isfinite(out))
    if valid_idx.size == 0:
        return out, marked.copy()
    # np.interp clamps outside [xp[0], xp[-1]], which is the backward/forward fill at the edges.
    out[marked] = np.interp(np.flatnonzero(marked), valid_idx, out[valid_idx])
    return out, np.zeros_like(marked)


def fill_with_mean(column: np.ndarray, marked: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    out = column.copy()
    if not marked.any():
        return out, marked.copy()
    valid = ~marked & np.isfinite(out)
    if not valid.any():
        return out, marked.copy()
    out[marked] = float(out[valid].mean())
    return out, np.zeros_like(marked)


def missing_mask(column: np.ndarray) -> np.ndarray:
    """Dropout marker: exact zeros and NaN are both treated as missing readings."""
    return (column == 0.0) | np.isnan(column)


def repair_column(column: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Treat exact zeros and NaN as dropouts and repair them.

    Returns ``(values, unresolved)``; unresolved entries are left as NaN.
    """
    column = np.asarray(column, dtype=np.float64)
    marked = missing_mask(column)
    values, remaining = interpolate_marked(column, marked)
    values, remaining = fill_with_mean(values, remaining)
    values[remaining] = np.nan
    return values, remaining


def repair_zeros(samples: WindowLike) -> np.ndarray:
    """Repair zero and NaN readings channel by channel and drop rows that could not be resolved.

    Row order is preserved. Rows only disappear when a whole channel is missing.
    """
    window = as_window(samples)
    repaired = window.copy()
    if window.shape[0] == 0:
        return repaired

    unresolved: Optional[np.ndarray] = None
    for col_index, name in enumerate(CHANNELS):
        column = window[:, col_index]
        missing_count = int(np.count_nonzero(missing_mask(column)))
        if missing_count == 0:
            continue
        repaired[:, col_index], remaining = repair_column(column)
        unresolved = remaining if unresolved is None else (unresolved | remaining)
        logger.debug(
            "Column %s: %d missing values replaced, %d unresolved",
            name,
            missing_count - int(remaining.sum()),
            int(remaining.sum()),
        )

    if unresolved is None or not unresolved.any():
        return repaired

    logger.warning(
        "Zero repair dropped %d of %d rows with unresolved channels", int(unresolved.sum()), repaired.shape[0]
    )
    return repaired[~unresolved]
