"""
Structured log lines and in-process counters for the access core.

Every event is one JSON object on the "tenant_access" logger. The request id
bound by the HTTP middleware is attached automatically, so resolvers running
deep inside a request never have to thread it through.
"""
from __future__ import annotations

import json
import logging
from collections import Counter
from contextvars import ContextVar, Token
from threading import Lock
from typing import Any


logger = logging.getLogger("tenant_access")

_request_id: ContextVar[str | None] = ContextVar("tenant_access_request_id", default=None)
_metrics_lock = Lock()
_metrics_counter: Counter[str] = Counter()


def _normalize(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, dict):
        return {str(k): _normalize(v) for k, v in value.items()}
    if isinstance(value, (frozenset, set)):
        return sorted(_normalize(v) for v in value)
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    return str(value)


def bind_request_id(request_id: str | None) -> Token:
    return _request_id.set(request_id)


def unbind_request_id(token: Token) -> None:
    _request_id.reset(token)


def current_request_id() -> str | None:
    return _request_id.get()


def metric_key(name: str, **labels: Any) -> str:
    if not labels:
        return name
    ordered = ",".join(f"{k}={labels[k]}" for k in sorted(labels))
    return f"{name}|{ordered}"


def incr_metric(name: str, value: int = 1, **labels: Any) -> None:
    key = metric_key(name, **{k: _normalize(v) for k, v in labels.items()})
    with _metrics_lock:
        _metrics_counter[key] += value


def metrics_snapshot() -> dict[str, int]:
    with _metrics_lock:
        return dict(_metrics_counter)


def reset_metrics() -> None:
    with _metrics_lock:
        _metrics_counter.clear()


def log_event(
    event: str,
    *,
    level: int = logging.INFO,
    request_id: str | None = None,
    **fields: Any,
) -> None:
    payload = {"event": event}
    request_id = request_id or current_request_id()
    if request_id:
        payload["request_id"] = request_id
    for key, value in fields.items():
        payload[key] = _normalize(value)
    logger.log(level, json.dumps(payload, sort_keys=True))


def record_store_failure(event: str, step: str, error: Exception, **fields: Any) -> None:
    """A resolver degraded because the record store failed or returned a malformed row."""
    log_event(event, level=logging.WARNING, step=step, error=str(error), **fields)
    incr_metric("store_failures", step=step)
