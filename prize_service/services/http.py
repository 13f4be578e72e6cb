from __future__ import annotations

import json
import logging
import os
from typing import Any
from urllib import error, request

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = float(os.getenv("REMOTE_TIMEOUT_SECONDS", "15") or "15")


class UpstreamServiceError(RuntimeError):
    """Raised when a remote match or notification service call fails."""

    def __init__(self, message: str, *, status_code: int, retryable: bool = False) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


def request_json(
    method: str,
    url: str,
    *,
    payload: Any | None = None,
    timeout: float | None = None,
    service: str = "remote service",
) -> Any:
    body = json.dumps(payload, ensure_ascii=False).encode("utf-8") if payload is not None else None
    req = request.Request(
        url,
        data=body,
        method=method,
        headers={"Content-Type": "application/json", "Accept": "application/json"},
    )

    logger.debug("%s %s", method, url)
    try:
        with request.urlopen(req, timeout=timeout or DEFAULT_TIMEOUT_SECONDS) as response:
            raw = response.read().decode("utf-8")
    except error.HTTPError as exc:
        _handle_http_error(exc, service)
    except error.URLError as exc:
        raise UpstreamServiceError(f"{service} unavailable: {exc.reason}", status_code=503, retryable=True) from exc

    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise UpstreamServiceError(f"{service} returned invalid JSON", status_code=502) from exc


def _handle_http_error(exc: error.HTTPError, service: str) -> None:
    raw_body = exc.read().decode("utf-8", errors="ignore")
    message = _extract_error_message(raw_body) or f"{service} request failed"
    logger.warning("%s responded with %s: %s", service, exc.code, message)

    if exc.code == 429:
        raise UpstreamServiceError(message, status_code=502, retryable=True) from exc
    if exc.code >= 500:
        raise UpstreamServiceError(message, status_code=503, retryable=True) from exc
    raise UpstreamServiceError(message, status_code=502) from exc


def _extract_error_message(raw_body: str) -> str | None:
    try:
        parsed = json.loads(raw_body)
    except json.JSONDecodeError:
        return raw_body or None

    if isinstance(parsed, dict):
        for key in ("error", "message"):
            value = parsed.get(key)
            if isinstance(value, str):
                return value
            if isinstance(value, dict) and isinstance(value.get("message"), str):
                return value["message"]
    return None
