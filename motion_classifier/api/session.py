from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import logging

from ..exceptions import EmptyInputError
from ..monitoring.manager import MotionMonitor
from .dependencies import get_monitor

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/v1/session/start")
async def start_session(monitor: MotionMonitor = Depends(get_monitor)):
    await monitor.start_recording()
    return JSONResponse(status_code=200, content={"status": "ok", "is_recording": True})


@router.post("/api/v1/session/stop")
async def stop_session(monitor: MotionMonitor = Depends(get_monitor)):
    count = await monitor.stop_recording()
    return JSONResponse(status_code=200, content={"status": "ok", "session_samples": count})


@router.post("/api/v1/session/export")
async def export_session(monitor: MotionMonitor = Depends(get_monitor)):
    try:
        path = monitor.export_session()
    except EmptyInputError as e:
        return JSONResponse(status_code=404, content={"status": "error", "reason": "no_data", "message": str(e)})
    return JSONResponse(status_code=200, content={"status": "ok", "file": str(path)})


@router.post("/api/v1/buffer/export")
async def export_buffer(monitor: MotionMonitor = Depends(get_monitor)):
    try:
        path = monitor.export_buffer()
    except EmptyInputError as e:
        return JSONResponse(status_code=404, content={"status": "error", "reason": "no_data", "message": str(e)})
    return JSONResponse(status_code=200, content={"status": "ok", "file": str(path)})
