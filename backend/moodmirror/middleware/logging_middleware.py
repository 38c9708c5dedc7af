"""
Request logging middleware.

Pure ASGI (not BaseHTTPMiddleware) so streamed and file responses pass
through untouched. Logs method, path, status and duration for every
request; JSON request/response bodies are logged with credentials masked.
CSV and HTML report exports are never echoed into the log.
"""

import json
import logging
import time
import uuid
from typing import Dict, List, Optional

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..core.logging_config import filter_sensitive_data, truncate_large_data

logger = logging.getLogger(__name__)

MAX_BODY_LOG = 5000


def _headers_to_dict(raw_headers) -> Dict[str, str]:
    return {
        k.decode("latin-1").lower(): v.decode("latin-1")
        for k, v in raw_headers
    }


def _sanitize_json_body(chunks: List[bytes]) -> Optional[str]:
    """Masked JSON text, or None if the body is empty or not JSON."""
    body = b"".join(chunks)
    if not body:
        return None
    try:
        payload = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return None
    return truncate_large_data(
        json.dumps(filter_sensitive_data(payload), ensure_ascii=False),
        max_length=MAX_BODY_LOG,
    )


def _error_reason(response_text: Optional[str]) -> Optional[str]:
    """The "error" (or FastAPI "detail") field of an error body."""
    if not response_text:
        return None
    try:
        payload = json.loads(response_text)
    except ValueError:
        return None
    if isinstance(payload, dict):
        for key in ("error", "detail", "message"):
            if payload.get(key):
                return truncate_large_data(str(payload[key]), max_length=500)
    return None


class RequestLoggingMiddleware:
    """Logs every HTTP request with its outcome and timing."""

    def __init__(self, app: ASGIApp, exclude_paths: Optional[list] = None):
        """
        Args:
            app: The ASGI application
            exclude_paths: Paths that are passed through without logging
        """
        self.app = app
        self.exclude_paths = exclude_paths or ["/health", "/"]

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        request_id = uuid.uuid4().hex[:12]
        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "")
        query_string = scope.get("query_string", b"").decode("utf-8", errors="ignore")
        request_headers = _headers_to_dict(scope.get("headers", []))
        client = scope.get("client")

        request_chunks: List[bytes] = []
        response_chunks: List[bytes] = []
        status_code = 0
        response_is_json = False

        async def logging_receive() -> Message:
            message = await receive()
            if message["type"] == "http.request":
                request_chunks.append(message.get("body", b""))
            return message

        async def logging_send(message: Message) -> None:
            nonlocal status_code, response_is_json
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
                content_type = _headers_to_dict(message.get("headers", [])).get("content-type", "")
                response_is_json = content_type.startswith("application/json")
            elif message["type"] == "http.response.body" and response_is_json:
                response_chunks.append(message.get("body", b""))
            await send(message)

        logger.debug(
            f"Request started: {method} {path}",
            extra={"extra_fields": {
                "request_id": request_id,
                "method": method,
                "path": path,
                "query": query_string or None,
                "client": client[0] if client else None,
                "user_agent": request_headers.get("user-agent"),
            }},
        )

        try:
            await self.app(scope, logging_receive, logging_send)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Request failed: {method} {path} - {e}",
                exc_info=True,
                extra={"extra_fields": {
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "duration_ms": round(duration_ms, 2),
                }},
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        request_body = None
        if request_headers.get("content-type", "").startswith("application/json"):
            request_body = _sanitize_json_body(request_chunks)
        response_body = _sanitize_json_body(response_chunks) if response_is_json else None
        error_reason = _error_reason(response_body) if status_code >= 400 else None

        if status_code >= 500:
            log_level = logging.ERROR
        elif status_code >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        message = f"{method} {path} - {status_code} ({duration_ms:.2f}ms)"
        if error_reason:
            message += f" | error={error_reason}"

        logger.log(
            log_level,
            message,
            extra={"extra_fields": {
                "request_id": request_id,
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": round(duration_ms, 2),
                "request_body": request_body,
                "response_body": response_body,
                "error_reason": error_reason,
            }},
        )
