from __future__ import annotations

import json

from shopfloor.core.middleware import _format_body_for_log, _redact_sensitive_keys


def test_redacts_customer_names_recursively() -> None:
  payload = {"customerName": "Acme", "jobName": "Kitchen", "jobs": [{"customer_name": "Birch"}]}
  assert _redact_sensitive_keys(payload) == {"customerName": "***", "jobName": "Kitchen", "jobs": [{"customer_name": "***"}]}


def test_format_body_for_log() -> None:
  assert _format_body_for_log(b"", "application/json", 100) == "<empty>"
  assert _format_body_for_log(b"abc", "text/plain", 100) == "<non-json body 3 bytes>"
  assert _format_body_for_log(b'{"a": 1}', "application/json", 2).startswith("<json body 8 bytes")
  logged = _format_body_for_log(json.dumps({"customerName": "Acme", "status": "cut"}).encode(), "application/json", 1024)
  assert json.loads(logged) == {"customerName": "***", "status": "cut"}
