import numpy as np
import pytest

from motion_classifier.exceptions import EmptyInputError, WindowSizeMismatchError
from motion_classifier.motion_config import MotionConfig, WindowConfig
from motion_classifier.processing.pipeline import PreprocessingPipeline


def _clamp(v: float) -> float:
    return max(-1.0, min(1.0, v))


def test_combined_csv_of_700_rows_yields_normalized_window(rows, csv_text) -> None:
    prepared = PreprocessingPipeline(MotionConfig()).prepare_csv(csv_text)

    assert prepared.normalized.shape == (700, 6)
    assert prepared.samples == 700
    assert prepared.normalized.min() >= -1.0
    assert prepared.normalized.max() <= 1.0
    expected = _clamp(2 * (rows[0][0] - (-2.2413)) / (3.0627 - (-2.2413)) - 1)
    assert prepared.normalized[0, 0] == pytest.approx(expected, abs=1e-6)


def test_csv_with_wrong_row_count_fails(make_rows, to_csv) -> None:
    pipeline = PreprocessingPipeline(MotionConfig())
    with pytest.raises(WindowSizeMismatchError) as excinfo:
        pipeline.prepare_csv(to_csv(make_rows(699)))
    assert excinfo.value.expected == 700
    assert excinfo.value.actual == 699

    with pytest.raises(WindowSizeMismatchError):
        pipeline.prepare_csv(to_csv(make_rows(701)))


def test_csv_with_all_zero_channel_shrinks_and_fails(make_rows, to_csv) -> None:
    data = make_rows(700)
    for row in data:
        row[4] = 0.0
    with pytest.raises(WindowSizeMismatchError) as excinfo:
        PreprocessingPipeline(MotionConfig()).prepare_csv(to_csv(data))
    assert excinfo.value.actual == 0


def test_csv_zero_dropouts_are_repaired_before_normalizing(rows, to_csv) -> None:
    rows[5][0] = 0.0
    prepared = PreprocessingPipeline(MotionConfig()).prepare_csv(to_csv(rows))

    assert prepared.repaired[5, 0] == pytest.approx((rows[4][0] + rows[6][0]) / 2)
    assert prepared.raw[5, 0] == 0.0


def test_empty_csv_fails() -> None:
    with pytest.raises(EmptyInputError):
        PreprocessingPipeline(MotionConfig()).prepare_csv("acc_z,acc_y\n")


def test_live_snapshot_longer_than_target_is_truncated(make_rows) -> None:
    data = np.asarray(make_rows(750))
    prepared = PreprocessingPipeline(MotionConfig()).prepare_live(data)

    assert prepared.samples == 700
    assert np.array_equal(prepared.raw, data[:700])


def test_live_and_csv_sources_give_identical_windows(rows, csv_text) -> None:
    pipeline = PreprocessingPipeline(MotionConfig())
    assert np.array_equal(pipeline.prepare_live(rows).normalized, pipeline.prepare_csv(csv_text).normalized)


def test_target_size_comes_from_config(make_rows) -> None:
    pipeline = PreprocessingPipeline(MotionConfig(window=WindowConfig(target_samples=10)))
    assert pipeline.prepare(make_rows(10)).normalized.shape == (10, 6)
    with pytest.raises(EmptyInputError):
        pipeline.prepare([])
