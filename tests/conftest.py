from typing import Dict, List, Optional

import numpy as np
import pytest

from motion_classifier.exceptions import InferenceError


def _make_rows(count: int) -> List[List[float]]:
    return [
        [0.1 + 0.001 * i, 0.2 + 0.001 * i, -0.3 - 0.001 * i, 1.0, -0.5, 0.25]
        for i in range(count)
    ]


def _to_csv(rows: List[List[float]]) -> str:
    lines = ["acc_z,acc_y,acc_x,gyro_z,gyro_y,gyro_x"]
    lines.extend(",".join(repr(v) for v in row) for row in rows)
    return "\n".join(lines) + "\n"


class FakeClassifier:
    def __init__(self, scores: Optional[Dict[str, float]] = None, *, ready: bool = True, error: Optional[Exception] = None):
        self.scores = scores if scores is not None else {"conduite_brusque": 0.9, "conduite_normale": 0.1}
        self.ready = ready
        self.error = error
        self.windows: List[np.ndarray] = []

    @property
    def is_ready(self) -> bool:
        return self.ready

    def classify(self, window: np.ndarray) -> Dict[str, float]:
        self.windows.append(window)
        if self.error is not None:
            raise self.error
        return dict(self.scores)


@pytest.fixture
def make_rows():
    """Factory for non-zero, in-range six-channel rows."""
    return _make_rows


@pytest.fixture
def to_csv():
    return _to_csv


@pytest.fixture
def rows() -> List[List[float]]:
    return _make_rows(700)


@pytest.fixture
def csv_text(rows) -> str:
    return _to_csv(rows)


@pytest.fixture
def classifier_factory():
    return FakeClassifier


@pytest.fixture
def fake_classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest.fixture
def failing_classifier() -> FakeClassifier:
    return FakeClassifier(error=InferenceError("backend exploded"))
