"""Shared fixtures: canned HTTP responses and a stand-in for the Dify endpoint."""
import json
import threading
from datetime import date
from typing import Any, Dict, Optional
from unittest.mock import patch

import pytest
import requests

FIXED_TODAY = date(2026, 10, 19)
FUTURE_DAY = "2099-01-15"


def make_response(status_code: int = 200, body: Any = None, reason: str = "OK",
                  raw: Optional[bytes] = None) -> requests.Response:
    """Build a real requests.Response so .ok / .json() / .reason behave as in production."""
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    response.encoding = "utf-8"
    if raw is not None:
        response._content = raw
    else:
        response._content = json.dumps(body if body is not None else {}).encode("utf-8")
    return response


def workflow_answer(text: str) -> Dict[str, Any]:
    return {"data": {"outputs": {"text": text}}}


class FakeDify:
    """Records workflow calls and answers per drug; unknown drugs get a canned answer."""

    def __init__(self):
        self.calls = []
        self.responses: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def __call__(self, url, json=None, headers=None, timeout=None):
        with self._lock:
            self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        drug = json["inputs"]["drug"]
        answer = self.responses.get(drug)
        if isinstance(answer, Exception):
            raise answer
        if answer is None:
            return make_response(200, workflow_answer(f"{drug} は継続可能です"))
        return answer


@pytest.fixture
def fake_dify():
    fake = FakeDify()
    with patch("workflow_client.requests.post", side_effect=fake):
        yield fake


@pytest.fixture
def api_key_env(monkeypatch):
    monkeypatch.setenv("DIFY_API_KEY", "app-test-key")
    return "app-test-key"
