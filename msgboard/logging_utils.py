import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Callable

from fastapi import Request, Response


logger = logging.getLogger("msgboard")


def configure_logging(level: str) -> None:
    logger.setLevel(level)
    # create_app may run more than once per process (tests)
    if not logger.handlers:
        handler = logging.StreamHandler()
        logger.addHandler(handler)
    for handler in logger.handlers:
        handler.setLevel(level)


def route_label(request: Request) -> str:
    # metrics series per route template, not per message id
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


def iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def annotate(request: Request, **fields) -> None:
    """Attach extra fields to this request's access log line."""
    extra = getattr(request.state, "log_extra", None)
    if not isinstance(extra, dict):
        extra = request.state.log_extra = {}
    extra.update(fields)


async def logging_middleware(request: Request, call_next: Callable) -> Response:
    request_id = str(uuid.uuid4())
    start = time.perf_counter()
    metrics = request.app.state.metrics

    request.state.request_id = request_id
    request.state.log_extra = {}

    response: Response
    try:
        response = await call_next(request)
    except Exception:
        latency_ms = (time.perf_counter() - start) * 1000.0
        metrics.inc_http_request(route_label(request), 500)
        metrics.observe_latency_ms(latency_ms)
        log = {
            "ts": iso_now(),
            "level": "error",
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": 500,
            "latency_ms": round(latency_ms, 2),
        }
        logger.error(json.dumps(log))
        raise

    latency_ms = (time.perf_counter() - start) * 1000.0
    status_code = response.status_code

    metrics.inc_http_request(route_label(request), status_code)
    metrics.observe_latency_ms(latency_ms)

    log = {
        "ts": iso_now(),
        "level": "info",
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "status": status_code,
        "latency_ms": round(latency_ms, 2),
    }

    # handler-supplied fields (operation, message_id, result)
    extra = getattr(request.state, "log_extra", None)
    if isinstance(extra, dict):
        log.update(extra)
        if "operation" in extra:
            metrics.inc_operation(extra["operation"], extra.get("result", "error"))

    response.headers["X-Request-ID"] = request_id
    logger.info(json.dumps(log))
    return response
