from typing import List, Optional, Union
from pydantic import BaseModel, field_validator
import logging
import math

from ..monitoring.sensors import resolve_sensor_kind

logger = logging.getLogger(__name__)


class SensorValue(BaseModel):
    x: float
    y: float
    z: float

    @field_validator("x", "y", "z")
    @classmethod
    def validate_finite(cls, v):
        if not math.isfinite(v):
            raise ValueError("Sensor values must be finite")
        return v


class SensorEvent(BaseModel):
    sensor_type: Union[int, str]
    values: SensorValue
    sensor_name: Optional[str] = None
    timestamp_ns: Optional[int] = None
    accuracy: Optional[int] = None

    @field_validator("sensor_type")
    @classmethod
    def validate_sensor_type(cls, v):
        if resolve_sensor_kind(v) is None:
            raise ValueError(f"Unsupported sensor type: {v}")
        return v


class SensorEventBatch(BaseModel):
    events: List[SensorEvent]

    @field_validator("events")
    @classmethod
    def validate_not_empty(cls, v):
        if not v:
            raise ValueError("At least one sensor event is required")
        return v
