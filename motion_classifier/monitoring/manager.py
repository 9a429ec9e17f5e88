from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections import deque
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional

from ..exceptions import EmptyInputError, ModelNotReadyError, MotionClassifierError
from ..inference.classifier import Classifier, select_top_prediction
from ..inference.formatter import build_record, format_label, format_message
from ..motion_config import MotionConfig, get_motion_config
from ..processing.buffer import SampleBuffer
from ..processing.csv_io import write_samples_csv
from ..processing.pipeline import PreparedWindow, PreprocessingPipeline
from ..storage.prediction_storage import PredictionStorage
from .scheduler import PeriodicTrigger
from .sensors import SensorState

logger = logging.getLogger(__name__)


@dataclass
class PredictionOutcome:
    status: str
    message: str
    source: str = "live"
    label: Optional[str] = None
    display_label: Optional[str] = None
    confidence: float = 0.0
    samples: int = 0
    persisted: bool = False
    scores: Dict[str, float] = field(default_factory=dict)
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class MotionMonitor:
    """Live capture and periodic classification around a shared SampleBuffer.

    One trigger samples the latest sensor readings at the configured rate, the
    other classifies the first full window every ``interval_sec``. Classification
    works on a snapshot, so capture is never blocked by inference.
    """

    def __init__(
        self,
        *,
        classifier: Classifier,
        storage: PredictionStorage,
        config: Optional[MotionConfig] = None,
        sensors: Optional[SensorState] = None,
        export_dir: Path = Path("./data_storage/exports"),
        max_collected_samples: int = 360_000,
    ) -> None:
        self.config = config or get_motion_config()
        self.classifier = classifier
        self.storage = storage
        self.sensors = sensors or SensorState()
        self.export_dir = Path(export_dir)

        self.buffer = SampleBuffer(self.config.window.target_samples)
        self.pipeline = PreprocessingPipeline(self.config)

        self._capture = PeriodicTrigger(
            "capture", self.config.window.sampling_interval_sec, self._capture_cycle
        )
        self._predict = PeriodicTrigger(
            "auto-prediction",
            self.config.prediction.interval_sec,
            self._prediction_cycle,
            initial_delay_sec=self.config.prediction.interval_sec,
        )

        self._classifying = False
        self._csv_loaded = False
        self._recording = False
        self._session_samples: List[List[float]] = []
        # Oldest samples are discarded once the cap is reached (one hour at 100 Hz by default).
        self._all_samples: Deque[List[float]] = deque(maxlen=max_collected_samples)
        self._log_lock = threading.Lock()
        self._waiting_ticks = 0
        self.last_outcome: Optional[PredictionOutcome] = None

    # ------------------------------------------------------------------ capture

    @property
    def is_collecting(self) -> bool:
        return self._capture.is_running and not self._csv_loaded and not self.buffer.is_full()

    def start_capture(self) -> bool:
        """Start sampling into an empty buffer."""
        self.buffer.clear()
        self._waiting_ticks = 0
        started = self._capture.start()
        logger.info("Starting data sampling at %d Hz", self.config.window.sampling_rate_hz)
        return started

    async def stop_capture(self) -> None:
        await self._capture.stop()

    def capture_tick(self) -> bool:
        if self._csv_loaded:
            return False
        sample = self.sensors.current_sample()
        if sample is None:
            if self._waiting_ticks % 100 == 0:
                acc, gyro = self.sensors.latest()
                logger.debug("Waiting for sensor data... accel=%s gyro=%s", acc is not None, gyro is not None)
            self._waiting_ticks += 1
            return False
        if not self.buffer.append_if_below_target(sample):
            return False
        with self._log_lock:
            self._all_samples.append(list(sample))
            if self._recording:
                self._session_samples.append(list(sample))
        return True

    async def _capture_cycle(self) -> None:
        self.capture_tick()

    # --------------------------------------------------------------- prediction

    @property
    def is_auto_predicting(self) -> bool:
        return self._predict.is_running

    async def start_auto_prediction(self) -> bool:
        if self.is_auto_predicting:
            return False
        logger.info("Starting auto-prediction every %.1f seconds", self.config.prediction.interval_sec)
        if self.buffer.is_full() and self.classifier.is_ready:
            await self.predict_live()
        return self._predict.start()

    async def stop_auto_prediction(self) -> None:
        await self._predict.stop()
        logger.info("Auto-prediction stopped")

    async def _prediction_cycle(self) -> None:
        if not self.classifier.is_ready or not self.buffer.is_full():
            logger.debug(
                "Auto-prediction skipped: collecting=%s samples=%d ready=%s",
                self.is_collecting,
                self.buffer.size(),
                self.classifier.is_ready,
            )
            return
        await self.predict_live()

    async def predict_live(self) -> PredictionOutcome:
        """Classify the first full window of the buffer and report the outcome as a status."""
        target = self.config.window.target_samples
        if not self.classifier.is_ready:
            return self._set_outcome(PredictionOutcome(status="skipped", message="Model still loading, please wait..."))
        window = self.buffer.take_window_if_ready(target)
        if window is None:
            return self._set_outcome(
                PredictionOutcome(status="skipped", message=f"Not enough samples yet ({self.buffer.size()}/{target})")
            )

        source = "csv" if self._csv_loaded else "live"
        try:
            prepared = self.pipeline.prepare_live(window)
            outcome = await self._classify(prepared, source=source)
        except MotionClassifierError as exc:
            logger.warning("Prediction error: %s", exc)
            outcome = PredictionOutcome(status="error", message=f"Prediction error: {str(exc)[:100]}", source=source)
        except Exception as exc:
            logger.exception("Unexpected prediction failure: %s", exc)
            outcome = PredictionOutcome(status="error", message=f"Prediction failed: {str(exc)[:100]}", source=source)

        if source == "live" and outcome.status != "skipped":
            # Each live window is classified once; capture restarts on a fresh buffer.
            self.buffer.clear()
        return self._set_outcome(outcome)

    async def predict_csv(self, text: str) -> PredictionOutcome:
        """Classify an uploaded combined CSV.

        Pipeline errors propagate so callers can map them; live capture pauses
        while the uploaded window is loaded, until ``reset_upload``.
        """
        if not self.classifier.is_ready:
            raise ModelNotReadyError("Model not initialized")
        prepared = self.pipeline.prepare_csv(text)
        self.buffer.replace(prepared.repaired.tolist())
        self._csv_loaded = True
        logger.info("Combined CSV processed: %d samples loaded", prepared.samples)
        outcome = await self._classify(prepared, source="csv")
        return self._set_outcome(outcome)

    def reset_upload(self) -> None:
        self._csv_loaded = False
        self.buffer.clear()
        logger.info("CSV upload reset; live capture resumes")

    async def _classify(self, prepared: PreparedWindow, *, source: str) -> PredictionOutcome:
        if not self.classifier.is_ready:
            raise ModelNotReadyError("Model not initialized")
        if self._classifying:
            return PredictionOutcome(status="skipped", message="Classification already in progress", source=source)

        self._classifying = True
        try:
            scores = await asyncio.to_thread(self.classifier.classify, prepared.normalized)
        finally:
            self._classifying = False

        top = select_top_prediction(scores)
        display_label = format_label(top.label)
        outcome = PredictionOutcome(
            status="ok",
            message=format_message(display_label, top.score),
            source=source,
            label=top.label,
            display_label=display_label,
            confidence=top.score,
            samples=prepared.samples,
            scores=dict(scores),
        )
        logger.info("Final prediction: %s", outcome.message)

        record = build_record(
            top.label,
            top.score,
            prepared.samples,
            threshold=self.config.prediction.confidence_threshold,
            timestamp_ms=outcome.timestamp,
        )
        if record is None:
            logger.debug("Prediction confidence too low (%.3f), not saving to history", top.score)
        else:
            ok, error = await self.storage.insert(record)
            outcome.persisted = ok
            if not ok:
                logger.error("History write failed: %s", error)
        return outcome

    def _set_outcome(self, outcome: PredictionOutcome) -> PredictionOutcome:
        self.last_outcome = outcome
        return outcome

    # ---------------------------------------------------------------- recording

    @property
    def is_recording(self) -> bool:
        return self._recording

    async def start_recording(self) -> None:
        with self._log_lock:
            self._session_samples.clear()
            self._recording = True
        logger.info("Recording session started")
        await self.start_auto_prediction()

    async def stop_recording(self) -> int:
        with self._log_lock:
            self._recording = False
            count = len(self._session_samples)
        await self.stop_auto_prediction()
        logger.info("Recording session stopped. Collected %d samples", count)
        return count

    def export_session(self) -> Path:
        """Write the session log, or every collected sample when no session was recorded."""
        with self._log_lock:
            if self._recording or self._session_samples:
                data = [list(s) for s in self._session_samples]
            else:
                data = [list(s) for s in self._all_samples]
        if not data:
            raise EmptyInputError("No session data to export")
        return write_samples_csv(data, self.export_dir, prefix="session_data")

    def export_buffer(self) -> Path:
        window = self.buffer.snapshot_window(self.buffer.size())
        if window.shape[0] == 0:
            raise EmptyInputError("No data to export")
        return write_samples_csv(window.tolist(), self.export_dir, prefix="sensor_data")

    # ------------------------------------------------------------------ status

    def status(self) -> Dict[str, Any]:
        with self._log_lock:
            session_count = len(self._session_samples)
            total_count = len(self._all_samples)
        return {
            "collected_samples": self.buffer.size(),
            "target_samples": self.config.window.target_samples,
            "is_collecting": self.is_collecting,
            "is_auto_predicting": self.is_auto_predicting,
            "model_ready": bool(self.classifier.is_ready),
            "csv_loaded": self._csv_loaded,
            "is_recording": self._recording,
            "session_samples": session_count,
            "all_collected_samples": total_count,
            "last_prediction": self.last_outcome.to_dict() if self.last_outcome else None,
        }

    async def shutdown(self) -> None:
        await self.stop_auto_prediction()
        await self.stop_capture()
        self.sensors.reset()
