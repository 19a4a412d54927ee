# /postino/adapters/system/logging_cfg.py
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any


class JSONHandler(logging.StreamHandler):
    """One JSON object per line; `extra={"extra": {...}}` is merged into it."""

    def emit(self, record: logging.LogRecord) -> None:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        if record.exc_info:
            payload["exc"] = self.format(record).splitlines()[-1]
        self.stream.write(json.dumps(payload, default=str) + "\n")
        self.flush()


def configure_logger(level: int | str = logging.INFO) -> None:
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(JSONHandler(stream=sys.stdout))
