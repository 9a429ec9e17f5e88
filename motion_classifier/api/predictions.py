from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
import logging
from typing import Optional

from ..config import settings
from ..exceptions import (
    EmptyInputError,
    InferenceError,
    ModelNotReadyError,
    WindowSizeMismatchError,
)
from ..monitoring.manager import MotionMonitor
from ..storage.prediction_storage import PredictionStorage
from .dependencies import get_monitor, get_storage

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(status_code: int, reason: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "reason": reason, "message": message})


@router.post("/api/v1/predict")
async def predict_now(monitor: MotionMonitor = Depends(get_monitor)):
    outcome = await monitor.predict_live()
    status_code = 200 if outcome.status != "error" else 500
    return JSONResponse(status_code=status_code, content=outcome.to_dict())


@router.post("/api/v1/predict/csv")
async def predict_from_csv(
    request: Request,
    monitor: MotionMonitor = Depends(get_monitor),
    content_length: Optional[int] = Header(None),
):
    if content_length and content_length > settings.max_upload_size:
        logger.error(f"CSV upload too large: {content_length} bytes")
        return _error(413, "request_too_large", f"Upload exceeds {settings.max_upload_size} bytes")

    body = await request.body()
    try:
        text = body.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        logger.error(f"CSV upload is not valid UTF-8: {e}")
        return _error(400, "invalid_encoding", str(e))

    try:
        outcome = await monitor.predict_csv(text)
    except EmptyInputError as e:
        return _error(422, "empty_input", str(e))
    except WindowSizeMismatchError as e:
        return _error(422, "window_size_mismatch", str(e))
    except ModelNotReadyError as e:
        return _error(503, "model_not_ready", str(e))
    except InferenceError as e:
        return _error(502, "inference_failed", str(e))
    except Exception as e:
        logger.error(f"Error processing combined CSV upload: {str(e)}", exc_info=True)
        return _error(500, "internal_error", str(e))

    return JSONResponse(status_code=200, content=outcome.to_dict())


@router.post("/api/v1/predict/csv/reset")
async def reset_csv_upload(monitor: MotionMonitor = Depends(get_monitor)):
    monitor.reset_upload()
    return JSONResponse(status_code=200, content={"status": "ok"})


@router.get("/api/v1/predictions")
async def list_predictions(storage: PredictionStorage = Depends(get_storage)):
    records = await storage.list_all()
    return JSONResponse(status_code=200, content={"predictions": [r.to_dict() for r in records]})


@router.delete("/api/v1/predictions")
async def clear_predictions(storage: PredictionStorage = Depends(get_storage)):
    ok, error = await storage.delete_all()
    if not ok:
        return _error(500, "storage_failed", error or "")
    return JSONResponse(status_code=200, content={"status": "ok"})
