from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from ..motion_config import PredictionConfig

AGGRESSIVE_LABEL = "Aggressive Driving"
ECOLOGICAL_LABEL = "Ecological Driving"


def format_label(label: str) -> str:
    lowered = label.lower()
    if "brusque" in lowered:
        return AGGRESSIVE_LABEL
    if "normal" in lowered:
        return ECOLOGICAL_LABEL
    return label


def should_persist(confidence: float, threshold: float = PredictionConfig.confidence_threshold) -> bool:
    return float(confidence) >= float(threshold)


def format_message(display_label: str, confidence: float) -> str:
    return f"{display_label} ({confidence * 100:.1f}%)"


@dataclass
class PredictionRecord:
    prediction: str
    confidence: float
    samples: int
    timestamp: int
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        if payload["id"] is None:
            payload.pop("id")
        return payload

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "PredictionRecord":
        raw_id = payload.get("id")
        return cls(
            prediction=str(payload["prediction"]),
            confidence=float(payload["confidence"]),
            samples=int(payload["samples"]),
            timestamp=int(payload["timestamp"]),
            id=int(raw_id) if raw_id is not None else None,
        )


def build_record(
    label: str,
    confidence: float,
    samples: int,
    *,
    threshold: float = PredictionConfig.confidence_threshold,
    timestamp_ms: Optional[int] = None,
) -> Optional[PredictionRecord]:
    """History record for a prediction, or ``None`` when it falls below ``threshold``."""
    if not should_persist(confidence, threshold):
        return None
    return PredictionRecord(
        prediction=format_label(label),
        confidence=float(confidence),
        samples=int(samples),
        timestamp=int(timestamp_ms if timestamp_ms is not None else time.time() * 1000),
    )
