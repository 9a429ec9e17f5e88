import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import health, predictions, sensor_data, session
from .config import settings
from .inference.classifier import TorchScriptClassifier
from .monitoring.manager import MotionMonitor
from .motion_config import get_motion_config
from .storage.prediction_storage import PredictionStorage
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def build_monitor() -> MotionMonitor:
    classifier = TorchScriptClassifier(settings.model_path, settings.labels_path)
    return MotionMonitor(
        classifier=classifier,
        storage=PredictionStorage(settings.history_path),
        config=get_motion_config(settings.motion_config_path),
        export_dir=settings.export_path,
        max_collected_samples=settings.max_collected_samples,
    )


def create_app(monitor: Optional[MotionMonitor] = None, *, start_loops: Optional[bool] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {settings.app_name} v{settings.version}")
        active = monitor or build_monitor()
        app.state.monitor = active

        run_loops = start_loops if start_loops is not None else True
        initialize = getattr(active.classifier, "initialize", None)
        if run_loops and callable(initialize) and not active.classifier.is_ready:
            ready = await asyncio.to_thread(initialize)
            if not ready:
                logger.error("Model initialization failed - check model_path and labels_path")
        if run_loops and settings.auto_capture:
            active.start_capture()
        if run_loops and settings.auto_predict:
            await active.start_auto_prediction()

        yield

        await active.shutdown()
        cleanup = getattr(active.classifier, "cleanup", None)
        if callable(cleanup):
            cleanup()
        logger.info(f"Shutting down {settings.app_name}")

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        lifespan=lifespan
    )

    if settings.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(health.router, tags=["health"])
    app.include_router(sensor_data.router, tags=["sensor_data"])
    app.include_router(predictions.router, tags=["predictions"])
    app.include_router(session.router, tags=["session"])
    return app


def build_hypercorn_config() -> "Config":
    from hypercorn.config import Config

    config = Config()
    config.bind = [f"{settings.host}:{settings.port}"]
    config.loglevel = settings.log_level.lower()
    config.accesslog = "-"
    config.errorlog = "-"
    return config


def main() -> None:
    from hypercorn.asyncio import serve

    setup_logging(
        log_level=settings.log_level,
        log_path=settings.log_path,
        log_format=settings.log_format
    )
    logger.info(f"Server listening on {settings.host}:{settings.port}")
    asyncio.run(serve(create_app(), build_hypercorn_config()))


if __name__ == "__main__":
    main()
