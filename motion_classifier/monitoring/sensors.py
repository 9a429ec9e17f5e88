from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union

logger = logging.getLogger(__name__)


# Android sensor type ids and names accepted from clients.
SENSOR_TYPE_TO_KIND: Dict[Union[int, str], str] = {
    1: "acc",
    10: "acc",
    4: "gyro",
    "accelerometer": "acc",
    "linear_acceleration": "acc",
    "gyroscope": "gyro",
}


def resolve_sensor_kind(sensor_type: Union[int, str]) -> Optional[str]:
    key: Union[int, str] = sensor_type
    if isinstance(sensor_type, str):
        key = sensor_type.strip().lower()
        if key.isdigit():
            key = int(key)
    return SENSOR_TYPE_TO_KIND.get(key)


@dataclass(frozen=True)
class AxisReading:
    x: float
    y: float
    z: float


class SensorState:
    """Latest accelerometer and gyroscope readings, sampled by the capture tick."""

    def __init__(self) -> None:
        self._acc: Optional[AxisReading] = None
        self._gyro: Optional[AxisReading] = None
        self._lock = threading.Lock()

    def update(self, sensor_type: Union[int, str], x: float, y: float, z: float) -> bool:
        kind = resolve_sensor_kind(sensor_type)
        if kind is None:
            logger.debug("Ignoring event from unsupported sensor type %r", sensor_type)
            return False
        reading = AxisReading(float(x), float(y), float(z))
        with self._lock:
            if kind == "acc":
                self._acc = reading
            else:
                self._gyro = reading
        return True

    def latest(self) -> Tuple[Optional[AxisReading], Optional[AxisReading]]:
        with self._lock:
            return self._acc, self._gyro

    def current_sample(self) -> Optional[list]:
        """Combine the latest readings as [acc_z, acc_y, acc_x, gyro_z, gyro_y, gyro_x]."""
        acc, gyro = self.latest()
        if acc is None or gyro is None:
            return None
        return [acc.z, acc.y, acc.x, gyro.z, gyro.y, gyro.x]

    def reset(self) -> None:
        with self._lock:
            self._acc = None
            self._gyro = None
