import json
import logging
import time
import uuid
from typing import Any

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from shopfloor.config import get_settings

logger = logging.getLogger(__name__)

# Customer-identifying fields in job payloads.
_SENSITIVE_KEYS = {"customername", "customer_name", "authorization", "cookie", "token", "password"}


def _redact_sensitive_keys(data: Any) -> Any:
  """Redact sensitive keys from a dictionary or list recursively."""
  if isinstance(data, dict):
    return {k: ("***" if k.lower() in _SENSITIVE_KEYS else _redact_sensitive_keys(v)) for k, v in data.items()}
  if isinstance(data, list):
    return [_redact_sensitive_keys(item) for item in data]
  return data


def _normalize_headers(scope: Scope) -> dict[str, str]:
  return {key.decode("latin-1").lower(): value.decode("latin-1") for key, value in scope.get("headers", [])}


def _build_request_url(scope: Scope) -> str:
  path = scope.get("path", "")
  query_string = scope.get("query_string", b"")
  if query_string:
    return f"{path}?{query_string.decode('latin-1')}"
  return path


def _format_body_for_log(body: bytes, content_type: str | None, max_bytes: int) -> str:
  """Format a request/response body for logging with redaction and a size cap."""
  if not body:
    return "<empty>"

  if not content_type or "json" not in content_type.lower():
    return f"<non-json body {len(body)} bytes>"

  text = body.decode("utf-8", errors="replace")
  if len(body) > max_bytes:
    # Truncated JSON cannot be parsed for redaction.
    return f"<json body {len(body)} bytes, over {max_bytes} byte log cap>"

  try:
    parsed = json.loads(text)
  except json.JSONDecodeError:
    return text
  return json.dumps(_redact_sensitive_keys(parsed), ensure_ascii=True)


class RequestLoggingMiddleware:
  """Assign request ids and log request/response metadata for HTTP scopes."""

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    # WebSocket and lifespan scopes pass through untouched.
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    settings = get_settings()
    headers = _normalize_headers(scope)
    request_id = headers.get("x-request-id") or str(uuid.uuid4())
    scope.setdefault("state", {})["request_id"] = request_id

    start_time = time.perf_counter()
    method = scope.get("method", "UNKNOWN")
    logger.info("Incoming request request_id=%s %s %s", request_id, method, _build_request_url(scope))

    receive_wrapper = receive
    if settings.log_http_bodies:
      chunks: list[bytes] = []
      more_body = True
      while more_body:
        message = await receive()
        if message.get("type") != "http.request":
          break
        chunks.append(message.get("body", b""))
        more_body = message.get("more_body", False)

      request_body = b"".join(chunks)
      body_sent = False

      async def receive_wrapper() -> Message:
        nonlocal body_sent
        if body_sent:
          return await receive()
        body_sent = True
        return {"type": "http.request", "body": request_body, "more_body": False}

      if request_body:
        logger.info("Request body request_id=%s body=%s", request_id, _format_body_for_log(request_body, headers.get("content-type"), settings.log_http_body_bytes))

    status_code = 0
    response_chunks: list[bytes] = []
    response_content_type: str | None = None

    async def send_wrapper(message: Message) -> None:
      nonlocal status_code, response_content_type
      if message["type"] == "http.response.start":
        status_code = message.get("status", 0)
        response_headers = MutableHeaders(scope=message)
        if "x-request-id" not in response_headers:
          response_headers["x-request-id"] = request_id
        response_content_type = response_headers.get("content-type")
      elif settings.log_http_bodies and message["type"] == "http.response.body":
        response_chunks.append(message.get("body", b""))
      await send(message)

    await self.app(scope, receive_wrapper, send_wrapper)

    elapsed_ms = (time.perf_counter() - start_time) * 1000
    logger.info("Response request_id=%s status=%s (took %.2fms)", request_id, status_code, elapsed_ms)
    if settings.log_http_bodies and response_chunks:
      logger.info("Response body request_id=%s status=%s body=%s", request_id, status_code, _format_body_for_log(b"".join(response_chunks), response_content_type, settings.log_http_body_bytes))
