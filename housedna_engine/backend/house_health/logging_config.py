# backend/house_health/logging_config.py
from __future__ import annotations

import json
import logging
import os
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Iterator

recompute_id_ctx: ContextVar[str | None] = ContextVar("recompute_id", default=None)


def get_recompute_id() -> str | None:
    return recompute_id_ctx.get()


@contextmanager
def bind_recompute_id(rid: str | None = None) -> Iterator[str]:
    """
    Binds a correlation id for one recompute so every log line it emits
    can be grouped. Nested binds reuse the outer id.
    """
    outer = recompute_id_ctx.get()
    if outer and not rid:
        yield outer
        return

    rid = rid or str(uuid.uuid4())
    token = recompute_id_ctx.set(rid)
    try:
        yield rid
    finally:
        recompute_id_ctx.reset(token)


class JsonFormatter(logging.Formatter):
    """
    Minimal JSON formatter.
    Includes recompute_id (if bound), level, message, logger, timestamp, exception.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        rid = get_recompute_id()
        if rid:
            payload["recompute_id"] = rid

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        for k in ("house_id", "component_id", "recommendation_id", "task_id"):
            if hasattr(record, k):
                payload[k] = getattr(record, k)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging() -> None:
    level = (os.getenv("LOG_LEVEL") or "INFO").upper()

    root = logging.getLogger()
    root.setLevel(level)

    # Clear existing handlers (celery and repeated CLI calls)
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())

    root.addHandler(handler)

    logging.getLogger("celery").setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel((os.getenv("SQL_LOG_LEVEL") or "WARNING").upper())
