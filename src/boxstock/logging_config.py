from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

# logger name -> dedicated file, on top of app.log / errors.log
LOG_CHANNELS = {
    "boxstock.imports": "imports.log",
    "boxstock.store": "store.log",
}


class JsonFormatter(logging.Formatter):
    """One JSON object per line. ``extra={"context": {...}}`` is copied in as-is."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = getattr(record, "context", None)
        if isinstance(context, dict):
            payload["context"] = context
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _rotating(path: Path, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=2_000_000, backupCount=5, encoding="utf-8")
    handler.setFormatter(JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
    handler.setLevel(level)
    return handler


def setup_logging(logs_dir: Path, level: int = logging.INFO) -> None:
    logs_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    # test runners install their own handlers on root; only our file handlers count
    if any(isinstance(h, RotatingFileHandler) for h in root.handlers):
        return

    root.addHandler(_rotating(logs_dir / "app.log", logging.INFO))
    root.addHandler(_rotating(logs_dir / "errors.log", logging.ERROR))

    for name, filename in LOG_CHANNELS.items():
        channel = logging.getLogger(name)
        channel.addHandler(_rotating(logs_dir / filename, logging.INFO))
        channel.setLevel(logging.INFO)
