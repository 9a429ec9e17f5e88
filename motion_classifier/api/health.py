from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from datetime import datetime, timezone
from ..config import settings
from ..monitoring.manager import MotionMonitor
from .dependencies import get_monitor
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(monitor: MotionMonitor = Depends(get_monitor)):
    try:
        status = monitor.status()
        return JSONResponse(
            status_code=200,
            content={
                "status": "healthy",
                "app_name": settings.app_name,
                "version": settings.version,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "model_ready": status["model_ready"],
                "collected_samples": status["collected_samples"],
                "target_samples": status["target_samples"],
            }
        )
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "status": "unhealthy",
                "error": str(e)
            }
        )


@router.get("/")
async def root():
    return JSONResponse(
        content={
            "app_name": settings.app_name,
            "version": settings.version,
            "status": "running"
        }
    )
