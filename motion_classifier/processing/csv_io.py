from __future__ import annotations

import logging
import math
from datetime import datetime
from pathlib import Path
from typing import List, Sequence, Tuple

import pandas as pd

from ..exceptions import EmptyInputError, MalformedRowError
from ..motion_config import NUM_CHANNELS

logger = logging.getLogger(__name__)

HEADER_MARKERS: Tuple[str, ...] = ("acc_", "gyro_", "time", "sample")

EXPORT_COLUMNS = ["Sample", "Acc_Z", "Acc_Y", "Acc_X", "Gyro_Z", "Gyro_Y", "Gyro_X"]
EXPORT_FLOAT_FORMAT = "%.12f"


def is_header_line(line: str) -> bool:
    lowered = line.lower()
    return any(marker in lowered for marker in HEADER_MARKERS)


def _parse_line(line: str, line_number: int) -> List[float]:
    values = [v.strip() for v in line.split(",")]
    if len(values) < NUM_CHANNELS:
        raise MalformedRowError(line_number, f"only {len(values)} columns, expected {NUM_CHANNELS}")
    try:
        numeric = [float(v) for v in values[:NUM_CHANNELS]]
    except ValueError as exc:
        raise MalformedRowError(line_number, f"unparseable value ({exc})") from exc
    if any(not math.isfinite(v) for v in numeric):
        raise MalformedRowError(line_number, f"invalid values {numeric}")
    return numeric


def parse_combined(text: str) -> List[List[float]]:
    """Parse combined accelerometer+gyroscope CSV text into six-channel rows.

    Columns are ``acc_z, acc_y, acc_x, gyro_z, gyro_y, gyro_x``; extra columns are
    ignored. Only the first line may be a header. Bad lines are logged and
    skipped, and the call fails only when no usable row remains.
    """
    rows: List[List[float]] = []
    dropped = 0
    for line_number, line in enumerate(text.splitlines(), start=1):
        if line_number == 1 and is_header_line(line):
            logger.debug("Combined CSV: skipping header: %s", line)
            continue
        try:
            rows.append(_parse_line(line, line_number))
        except MalformedRowError as exc:
            dropped += 1
            logger.warning("Combined CSV: dropping %s", exc)

    if not rows:
        raise EmptyInputError("Empty CSV file: no usable sensor rows")

    logger.info("Combined CSV: read %d data points (%d lines dropped)", len(rows), dropped)
    flat = [v for row in rows for v in row]
    logger.debug("Combined CSV data range: %s to %s", min(flat), max(flat))
    return rows


def read_combined_csv(path: Path) -> List[List[float]]:
    return parse_combined(Path(path).read_text(encoding="utf-8"))


def samples_to_frame(samples: Sequence[Sequence[float]]) -> pd.DataFrame:
    if len(samples) == 0:
        raise EmptyInputError("No samples to export")
    df = pd.DataFrame([list(s)[:NUM_CHANNELS] for s in samples], columns=EXPORT_COLUMNS[1:], dtype="float64")
    df.insert(0, "Sample", range(1, len(df) + 1))
    return df


def format_samples_csv(samples: Sequence[Sequence[float]]) -> str:
    """Render samples in the export layout: 1-based index then six values with 12 decimals."""
    return samples_to_frame(samples).to_csv(index=False, float_format=EXPORT_FLOAT_FORMAT, lineterminator="\n")


def write_samples_csv(samples: Sequence[Sequence[float]], target_dir: Path, prefix: str = "sensor_data") -> Path:
    target_dir = Path(target_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / f"{prefix}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"
    target.write_text(format_samples_csv(samples), encoding="utf-8")
    logger.info("CSV file created: %s (%d samples)", target, len(samples))
    return target
