from fastapi import HTTPException, Request

from ..monitoring.manager import MotionMonitor
from ..storage.prediction_storage import PredictionStorage


def get_monitor(request: Request) -> MotionMonitor:
    monitor = getattr(request.app.state, "monitor", None)
    if monitor is None:
        raise HTTPException(status_code=503, detail="monitor_not_initialized")
    return monitor


def get_storage(request: Request) -> PredictionStorage:
    return get_monitor(request).storage
