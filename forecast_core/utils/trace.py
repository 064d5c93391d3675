# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 Forecast Engine Contributors
"""
Local JSONL trace of forecast runs.

One file per trace id under TRACE_DIR, one JSON object per line:
{"ts_ms", "trace_id", "event", "data"}. Events written by a run:

    trace.start         runtime config snapshot
    forecast.prior      prior and where it came from
    forecast.cluster    one per origin cluster
    forecast.influence  items whose leave-one-out delta exceeds the threshold
    forecast.computed   probabilities and audit checklist
    trace.stop

Tracing is a debugging aid for local runs only (see utils.runtime).
"""

from __future__ import annotations

import contextvars
import json
import math
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from forecast_core.runtime_config import EngineRuntimeConfig
from forecast_core.utils.runtime import is_local_run

_trace_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("forecast_trace_id", default=None)
_trace_enabled_var: contextvars.ContextVar[bool] = contextvars.ContextVar("forecast_trace_enabled", default=False)

TRACE_DIR = Path("data/trace")

# Long free text (claims, markdown reports) is cut to this many characters.
MAX_TRACE_STR = 2000
_FLOAT_DIGITS = 6

_SECRET_QUERY = re.compile(r"([?&](?:key|api_key|access_token|token)=)[^&]+", re.IGNORECASE)


def _clean_text(s: str) -> str:
    # Provenance URLs occasionally carry credentials in the query string
    s = _SECRET_QUERY.sub(r"\1***", s)
    if len(s) > MAX_TRACE_STR:
        return f"{s[:MAX_TRACE_STR]}...(+{len(s) - MAX_TRACE_STR} chars)"
    return s


def _sanitize(obj: Any) -> Any:
    """Make a payload JSON-safe: models to dicts, floats rounded, NaN/inf as strings."""
    if obj is None or isinstance(obj, (bool, int)):
        return obj
    if isinstance(obj, float):
        return round(obj, _FLOAT_DIGITS) if math.isfinite(obj) else str(obj)
    if isinstance(obj, str):
        return _clean_text(obj)
    if hasattr(obj, "to_dict"):
        return _sanitize(obj.to_dict())
    if isinstance(obj, Mapping):
        return {str(k): _sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [_sanitize(x) for x in obj]
    return _clean_text(str(obj))


def _trace_path(trace_id: str) -> Path:
    TRACE_DIR.mkdir(parents=True, exist_ok=True)
    safe_tid = "".join(c if c.isalnum() or c in "._-" else "_" for c in trace_id)
    return TRACE_DIR / f"{safe_tid}.jsonl"


def trace_enabled() -> bool:
    return bool(_trace_enabled_var.get())


def current_trace_id() -> str | None:
    return _trace_id_var.get()


@dataclass(frozen=True)
class TraceContext:
    trace_id: str
    enabled: bool


class Trace:
    """
    Local-only trace sink (JSONL) for debugging forecast runs.
    Never enabled outside local/dev environments.
    """

    @staticmethod
    def start(trace_id: str, *, runtime: EngineRuntimeConfig | None = None) -> TraceContext:
        runtime = runtime or EngineRuntimeConfig.load_from_env()
        enabled = bool(is_local_run() and runtime.features.trace_enabled)
        _trace_id_var.set(trace_id)
        _trace_enabled_var.set(enabled)
        if enabled:
            Trace.event("trace.start", {"runtime": runtime.to_safe_log_dict()})
        return TraceContext(trace_id=trace_id, enabled=enabled)

    @staticmethod
    def stop() -> None:
        if trace_enabled() and current_trace_id():
            Trace.event("trace.stop")
        _trace_enabled_var.set(False)
        _trace_id_var.set(None)

    @staticmethod
    def event(name: str, data: Any | None = None) -> None:
        tid = current_trace_id()
        if not trace_enabled() or not tid:
            return

        rec = {
            "ts_ms": int(time.time() * 1000),
            "trace_id": tid,
            "event": name,
            "data": _sanitize(data),
        }
        try:
            with _trace_path(tid).open("a", encoding="utf-8") as f:
                f.write(json.dumps(rec, ensure_ascii=False) + "\n")
        except OSError:
            # Tracing must never break the main flow.
            return
