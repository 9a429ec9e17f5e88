from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import logging

from ..monitoring.manager import MotionMonitor
from ..validators.sensor_event import SensorEventBatch
from .dependencies import get_monitor

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/v1/sensor-data")
async def receive_sensor_events(batch: SensorEventBatch, monitor: MotionMonitor = Depends(get_monitor)):
    accepted = 0
    for event in batch.events:
        if monitor.sensors.update(event.sensor_type, event.values.x, event.values.y, event.values.z):
            accepted += 1
    logger.debug("Accepted %d/%d sensor events", accepted, len(batch.events))
    return JSONResponse(
        status_code=200,
        content={"status": "ok", "accepted": accepted, "collected_samples": monitor.buffer.size()}
    )


@router.get("/api/v1/status")
async def get_status(monitor: MotionMonitor = Depends(get_monitor)):
    return JSONResponse(status_code=200, content=monitor.status())


@router.post("/api/v1/capture/start")
async def start_capture(monitor: MotionMonitor = Depends(get_monitor)):
    started = monitor.start_capture()
    return JSONResponse(status_code=200, content={"status": "ok", "started": started})


@router.post("/api/v1/capture/stop")
async def stop_capture(monitor: MotionMonitor = Depends(get_monitor)):
    await monitor.stop_capture()
    return JSONResponse(status_code=200, content={"status": "ok"})
