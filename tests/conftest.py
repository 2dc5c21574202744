"""
Shared fixtures: real PNG bytes, a stub HTTP session and a scripted edit client.
"""

import base64
import io
import json

import pytest
import requests
from PIL import Image

from neuroscan.errors import EditError
from neuroscan.models import EncodedImage

MIB = 1024 * 1024


class StubHttpSession(requests.Session):
    """requests.Session that replays queued responses (or raises queued exceptions)."""

    def __init__(self, responses=None):
        super().__init__()
        self.responses = list(responses or [])
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class ScriptedEditClient:
    """Stands in for ImageEditClient; `on_call` runs while the session is PROCESSING."""

    def __init__(self, results=None, on_call=None):
        self.model = "stub-model"
        self.results = list(results or [])
        self.on_call = on_call
        self.calls = []

    def edit_image(self, image, instruction):
        self.calls.append((image, instruction))
        if self.on_call is not None:
            self.on_call()
        result = self.results.pop(0)
        if isinstance(result, EditError):
            raise result
        return result


@pytest.fixture
def png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (4, 3), "red").save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_b64(png_bytes):
    return base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def encoded_png(png_b64):
    return EncodedImage(data=png_b64, mime_type="image/png")


@pytest.fixture
def make_response():
    def _make(payload=None, status=200, body=None):
        response = requests.Response()
        response.status_code = status
        response.url = "https://example.test/v1beta/models/stub:generateContent"
        if body is None:
            body = json.dumps(payload if payload is not None else {})
        response._content = body.encode("utf-8")
        response.headers["Content-Type"] = "application/json"
        return response
    return _make


@pytest.fixture
def gemini_payload():
    """Build a generateContent response body from part dicts."""
    def _build(parts):
        return {"candidates": [{"content": {"role": "model", "parts": parts}, "finishReason": "STOP"}]}
    return _build
