import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

from pythonjsonlogger import jsonlogger

_LOG_FIELDS = "%(asctime)s %(name)s %(levelname)s %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _prune_logs(log_path: Path, retention_days: int) -> int:
    if retention_days <= 0:
        return 0
    cutoff = time.time() - (retention_days * 24 * 60 * 60)
    removed = 0
    for entry in log_path.glob("*.log"):
        try:
            if entry.is_file() and entry.stat().st_mtime < cutoff:
                entry.unlink()
                removed += 1
        except FileNotFoundError:
            continue
    return removed


def build_formatter(log_format: str = "json") -> logging.Formatter:
    if log_format == "json":
        return jsonlogger.JsonFormatter(_LOG_FIELDS, datefmt=_DATE_FORMAT)
    return logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt=_DATE_FORMAT)


def setup_logging(
    log_level: str = "INFO",
    log_path: Optional[Path] = Path("./logs"),
    log_format: str = "json",
    retention_days: int = 30,
) -> None:
    """Route the root logger to stdout and, when ``log_path`` is set, to a dated file.

    Re-running replaces the existing handlers, so the service and the CLI can both
    call it without duplicating output.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    formatter = build_formatter(log_format)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_path is None:
        return

    log_path = Path(log_path)
    log_path.mkdir(parents=True, exist_ok=True)
    log_file = log_path / f"motion_classifier_{datetime.now().strftime('%Y%m%d')}.log"
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    removed = _prune_logs(log_path, retention_days)
    logging.getLogger(__name__).info(
        "Logging initialized - level=%s format=%s file=%s pruned=%d", log_level, log_format, log_file, removed
    )
