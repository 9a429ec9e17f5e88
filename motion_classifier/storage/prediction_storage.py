from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional, Tuple

import aiofiles

from ..inference.formatter import PredictionRecord

logger = logging.getLogger(__name__)


class PredictionStorage:
    """Append-only JSONL history of confident predictions."""

    def __init__(self, file_path: Path):
        self.file_path = Path(file_path)
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()
        self._next_id: Optional[int] = None
        logger.info("PredictionStorage initialized at %s", self.file_path)

    async def _read_records(self) -> List[PredictionRecord]:
        if not self.file_path.exists():
            return []
        records: List[PredictionRecord] = []
        async with aiofiles.open(self.file_path, mode="r", encoding="utf-8") as f:
            async for line in f:
                if not line.strip():
                    continue
                try:
                    records.append(PredictionRecord.from_dict(json.loads(line)))
                except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
                    logger.warning("Skipping corrupt history line in %s: %s", self.file_path, exc)
        return records

    async def insert(self, record: PredictionRecord) -> Tuple[bool, Optional[str]]:
        try:
            async with self._lock:
                if self._next_id is None:
                    existing = await self._read_records()
                    self._next_id = max((r.id or 0 for r in existing), default=0) + 1
                record.id = self._next_id
                self._next_id += 1
                async with aiofiles.open(self.file_path, mode="a", encoding="utf-8") as f:
                    await f.write(json.dumps(record.to_dict(), ensure_ascii=False) + "\n")
            logger.info("Prediction saved: %s", record.to_dict())
            return True, None
        except Exception as exc:
            error_msg = f"Failed to store prediction: {exc}"
            logger.error(error_msg)
            return False, error_msg

    async def list_all(self) -> List[PredictionRecord]:
        """All stored predictions, newest first."""
        async with self._lock:
            records = await self._read_records()
        records.sort(key=lambda r: (r.timestamp, r.id or 0), reverse=True)
        logger.debug("Loaded %d predictions from %s", len(records), self.file_path)
        return records

    async def delete_all(self) -> Tuple[bool, Optional[str]]:
        try:
            async with self._lock:
                async with aiofiles.open(self.file_path, mode="w", encoding="utf-8") as f:
                    await f.write("")
                self._next_id = None
            logger.info("Prediction history cleared: %s", self.file_path)
            return True, None
        except Exception as exc:
            error_msg = f"Failed to clear prediction history: {exc}"
            logger.error(error_msg)
            return False, error_msg
