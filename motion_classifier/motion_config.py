from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple

try:
    import tomllib
except ModuleNotFoundError:  # Python < 3.11
    import tomli as tomllib

from .exceptions import ConfigurationError

# Channel order shared by every Sample: [acc_z, acc_y, acc_x, gyro_z, gyro_y, gyro_x]
CHANNELS: Tuple[str, ...] = ("acc_z", "acc_y", "acc_x", "gyro_z", "gyro_y", "gyro_x")
NUM_CHANNELS = len(CHANNELS)

# Calibration constants measured offline on the training distribution.
DEFAULT_RANGE_MIN: Tuple[float, ...] = (-2.2413, -1.3908, -1.5099, -12.5810, -5.4858, -5.5861)
DEFAULT_RANGE_MAX: Tuple[float, ...] = (3.0627, 1.6190, 1.3043, 14.8864, 9.7007, 6.5167)


@dataclass(frozen=True)
class WindowConfig:
    target_samples: int = 700
    sampling_rate_hz: int = 100

    @property
    def sampling_interval_sec(self) -> float:
        return 1.0 / float(self.sampling_rate_hz)


@dataclass(frozen=True)
class PredictionConfig:
    interval_sec: float = 7.0
    # Predictions below this confidence are shown but never written to history.
    confidence_threshold: float = 0.70


@dataclass(frozen=True)
class NormalizationRange:
    min: float
    max: float


@dataclass(frozen=True)
class NormalizationConfig:
    min_values: Tuple[float, ...] = DEFAULT_RANGE_MIN
    max_values: Tuple[float, ...] = DEFAULT_RANGE_MAX

    def __post_init__(self) -> None:
        if len(self.min_values) != NUM_CHANNELS or len(self.max_values) != NUM_CHANNELS:
            raise ConfigurationError(
                f"Normalization table needs {NUM_CHANNELS} entries, "
                f"got min={len(self.min_values)} max={len(self.max_values)}"
            )
        for name, lo, hi in zip(CHANNELS, self.min_values, self.max_values):
            if not float(hi) > float(lo):
                raise ConfigurationError(f"Invalid normalization range for {name}: min={lo} max={hi}")

    @property
    def ranges(self) -> Tuple[NormalizationRange, ...]:
        return tuple(NormalizationRange(float(lo), float(hi)) for lo, hi in zip(self.min_values, self.max_values))


@dataclass(frozen=True)
class MotionConfig:
    window: WindowConfig = WindowConfig()
    prediction: PredictionConfig = PredictionConfig()
    normalization: NormalizationConfig = NormalizationConfig()


def _default_config_path() -> Path:
    # motion_classifier/motion_config.py -> <repo>/motion_config.toml
    return Path(__file__).resolve().parents[1] / "motion_config.toml"


def _float_tuple(raw: Optional[Sequence[float]], default: Tuple[float, ...]) -> Tuple[float, ...]:
    if raw is None:
        return default
    try:
        return tuple(float(x) for x in raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Normalization values must be numeric: {raw!r}") from exc


def _coerce(section: dict, key: str, default, cast):
    value = section.get(key, default)
    if isinstance(value, bool):
        raise ConfigurationError(f"{key} must be numeric, got {value!r}")
    try:
        return cast(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{key} must be numeric, got {value!r}") from exc


def load_motion_config(path: Optional[Path] = None) -> MotionConfig:
    path = Path(path) if path is not None else _default_config_path()
    if not path.exists():
        return MotionConfig()

    try:
        raw = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Unable to parse {path}: {exc}") from exc

    win_raw = raw.get("window", {}) or {}
    pred_raw = raw.get("prediction", {}) or {}
    norm_raw = raw.get("normalization", {}) or {}
    for name, section in (("window", win_raw), ("prediction", pred_raw), ("normalization", norm_raw)):
        if not isinstance(section, dict):
            raise ConfigurationError(f"[{name}] must be a table in {path}")

    window = WindowConfig(
        target_samples=_coerce(win_raw, "target_samples", WindowConfig.target_samples, int),
        sampling_rate_hz=_coerce(win_raw, "sampling_rate_hz", WindowConfig.sampling_rate_hz, int),
    )
    if window.target_samples <= 0 or window.sampling_rate_hz <= 0:
        raise ConfigurationError(
            f"target_samples and sampling_rate_hz must be > 0, got {window.target_samples}/{window.sampling_rate_hz}"
        )

    prediction = PredictionConfig(
        interval_sec=_coerce(pred_raw, "interval_sec", PredictionConfig.interval_sec, float),
        confidence_threshold=_coerce(
            pred_raw, "confidence_threshold", PredictionConfig.confidence_threshold, float
        ),
    )
    if prediction.interval_sec <= 0:
        raise ConfigurationError(f"interval_sec must be > 0, got {prediction.interval_sec}")

    normalization = NormalizationConfig(
        min_values=_float_tuple(norm_raw.get("min"), DEFAULT_RANGE_MIN),
        max_values=_float_tuple(norm_raw.get("max"), DEFAULT_RANGE_MAX),
    )

    return MotionConfig(window=window, prediction=prediction, normalization=normalization)


_CACHED: Optional[MotionConfig] = None


def get_motion_config(path: Optional[Path] = None) -> MotionConfig:
    global _CACHED
    if _CACHED is None:
        _CACHED = load_motion_config(path)
    return _CACHED
