from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Protocol, runtime_checkable

import numpy as np
import torch

from ..exceptions import InferenceError, ModelNotReadyError

logger = logging.getLogger(__name__)


@runtime_checkable
class Classifier(Protocol):
    """Anything that scores a normalized (N, 6) window per class label."""

    @property
    def is_ready(self) -> bool: ...

    def classify(self, window: np.ndarray) -> Dict[str, float]: ...


@dataclass(frozen=True)
class TopPrediction:
    label: str
    score: float

    @property
    def percentage(self) -> float:
        return self.score * 100.0


def select_top_prediction(scores: Mapping[str, float]) -> TopPrediction:
    """Argmax over ``scores``; ties keep the first label in iteration order."""
    best_label: Optional[str] = None
    best_score = float("-inf")
    for label, score in scores.items():
        score = float(score)
        if best_label is None or score > best_score:
            best_label, best_score = label, score
    if best_label is None:
        return TopPrediction(label="Unknown", score=0.0)
    return TopPrediction(label=best_label, score=best_score)


def load_labels(path: Path) -> List[str]:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    classes = payload.get("classes") if isinstance(payload, dict) else None
    if not isinstance(classes, list):
        raise ValueError(f"Invalid label format - missing classes array: {path}")
    labels = [str(c) for c in classes]
    if not labels:
        raise ValueError(f"No class labels found: {path}")
    return labels


class TorchScriptClassifier:
    """TorchScript backend fed with a (1, N, 6) float32 tensor.

    Output row 0 is mapped onto the labels of ``label_encoder.json`` in order.
    """

    def __init__(self, model_path: Path, labels_path: Path, *, device: str = "cpu") -> None:
        self.model_path = Path(model_path)
        self.labels_path = Path(labels_path)
        self.device = torch.device(device)
        self.labels: List[str] = []
        self._model: Optional[torch.jit.ScriptModule] = None
        self._ready = False
        self._lock = threading.Lock()

    @property
    def is_ready(self) -> bool:
        return self._ready

    def initialize(self) -> bool:
        logger.info("Starting classifier initialization: model=%s labels=%s", self.model_path, self.labels_path)
        for required in (self.labels_path, self.model_path):
            if not required.exists():
                logger.error("Missing required file: %s", required)
                return False
        try:
            labels = load_labels(self.labels_path)
            model = torch.jit.load(str(self.model_path), map_location=self.device)
            model.eval()
        except Exception as exc:
            logger.exception("Classifier initialization failed: %s", exc)
            return False

        with self._lock:
            self.labels = labels
            self._model = model
            self._ready = True
        logger.info("Classifier ready with labels %s", labels)
        return True

    def classify(self, window: np.ndarray) -> Dict[str, float]:
        with self._lock:
            model = self._model
            labels = list(self.labels)
        if not self._ready or model is None:
            raise ModelNotReadyError("Model not initialized")

        try:
            tensor = torch.from_numpy(np.ascontiguousarray(window, dtype=np.float32)).unsqueeze(0).to(self.device)
            with torch.no_grad():
                output = model(tensor)
            if isinstance(output, (tuple, list)):
                output = output[0]
            row = output.detach().cpu().reshape(output.shape[0], -1)[0].numpy()
        except Exception as exc:
            logger.error("Prediction backend error: %s", exc)
            raise InferenceError(f"Failed to run prediction: {exc}") from exc

        if row.shape[0] < len(labels):
            raise InferenceError(f"Model produced {row.shape[0]} scores for {len(labels)} labels")
        scores = {label: float(row[i]) for i, label in enumerate(labels)}
        logger.debug("Prediction completed: max=%s", max(scores.values()))
        return scores

    def cleanup(self) -> None:
        with self._lock:
            self._model = None
            self.labels = []
            self._ready = False
        logger.info("Classifier cleanup completed")
