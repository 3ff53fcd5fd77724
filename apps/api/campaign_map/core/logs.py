"""
Structured stdout logging.

Line keys (locked): ts, level, message, request_id, event, module
"""
from __future__ import annotations

import datetime
import json
import logging
import os
from typing import Any, Dict, Optional

_log = logging.getLogger("campaign_map")
if not _log.handlers:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

_LEVELS = {"debug": 10, "info": 20, "audit": 20, "warning": 30, "error": 40}


def now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat().replace("+00:00", "Z")


def emit(level: str, event: str, message: str, request_id: Optional[str], module: str, **extra: Any) -> None:
    if _LEVELS.get(level.lower(), 20) < _log.getEffectiveLevel():
        return
    payload: Dict[str, Any] = {
        "ts": now_iso(),
        "level": level.lower(),
        "message": message,
        "request_id": request_id,
        "event": event,
        "module": module,
    }
    payload.update(extra)
    print(json.dumps(payload, ensure_ascii=False, default=str), flush=True)
