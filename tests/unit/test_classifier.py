import json

import numpy as np
import pytest
import torch

from motion_classifier.exceptions import InferenceError, ModelNotReadyError
from motion_classifier.inference.classifier import (
    Classifier,
    TorchScriptClassifier,
    load_labels,
    select_top_prediction,
)


class _MeanHead(torch.nn.Module):
    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return x.mean(dim=1)[:, :2]


class _BrokenHead(torch.nn.Module):
    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return x.reshape(-1, 11)


def _write_assets(tmp_path, module: torch.nn.Module, classes=("conduite_brusque", "conduite_normale")):
    model_path = tmp_path / "model.pt"
    labels_path = tmp_path / "label_encoder.json"
    torch.jit.save(torch.jit.script(module), str(model_path))
    labels_path.write_text(json.dumps({"classes": list(classes)}), encoding="utf-8")
    return model_path, labels_path


def test_select_top_prediction_takes_argmax() -> None:
    top = select_top_prediction({"a": 0.1, "b": 0.7, "c": 0.2})
    assert top.label == "b"
    assert top.score == 0.7
    assert top.percentage == pytest.approx(70.0)


def test_select_top_prediction_ties_keep_first_label() -> None:
    assert select_top_prediction({"first": 0.5, "second": 0.5}).label == "first"


def test_select_top_prediction_handles_unnormalized_and_empty_scores() -> None:
    assert select_top_prediction({"a": -3.0, "b": -1.0}).label == "b"
    assert select_top_prediction({}).label == "Unknown"


def test_load_labels_validates_format(tmp_path) -> None:
    path = tmp_path / "labels.json"
    path.write_text('{"classes": []}', encoding="utf-8")
    with pytest.raises(ValueError):
        load_labels(path)

    path.write_text('{"labels": ["a"]}', encoding="utf-8")
    with pytest.raises(ValueError):
        load_labels(path)


def test_classify_before_initialize_raises_not_ready(tmp_path) -> None:
    clf = TorchScriptClassifier(tmp_path / "missing.pt", tmp_path / "missing.json")

    assert isinstance(clf, Classifier)
    assert clf.initialize() is False
    assert clf.is_ready is False
    with pytest.raises(ModelNotReadyError):
        clf.classify(np.zeros((700, 6), dtype=np.float32))


def test_torchscript_scores_are_mapped_onto_labels(tmp_path) -> None:
    model_path, labels_path = _write_assets(tmp_path, _MeanHead())
    clf = TorchScriptClassifier(model_path, labels_path)
    assert clf.initialize() is True

    window = np.zeros((700, 6), dtype=np.float32)
    window[:, 0] = 0.5
    window[:, 1] = -0.5
    scores = clf.classify(window)

    assert list(scores) == ["conduite_brusque", "conduite_normale"]
    assert scores["conduite_brusque"] == pytest.approx(0.5)
    assert scores["conduite_normale"] == pytest.approx(-0.5)

    clf.cleanup()
    assert clf.is_ready is False
    with pytest.raises(ModelNotReadyError):
        clf.classify(window)


def test_backend_failure_is_wrapped_in_inference_error(tmp_path) -> None:
    model_path, labels_path = _write_assets(tmp_path, _BrokenHead())
    clf = TorchScriptClassifier(model_path, labels_path)
    assert clf.initialize() is True

    with pytest.raises(InferenceError):
        clf.classify(np.zeros((700, 6), dtype=np.float32))


def test_too_few_scores_for_labels_is_an_inference_error(tmp_path) -> None:
    model_path, labels_path = _write_assets(tmp_path, _MeanHead(), classes=("a", "b", "c"))
    clf = TorchScriptClassifier(model_path, labels_path)
    assert clf.initialize() is True

    with pytest.raises(InferenceError):
        clf.classify(np.ones((700, 6), dtype=np.float32))
