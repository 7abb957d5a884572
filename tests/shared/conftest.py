import json

import pytest
import requests


@pytest.fixture
def make_response():
    """Build a `requests.Response` without touching the network."""

    def _make(status_code=200, body=None, reason="OK"):
        response = requests.Response()
        response.status_code = status_code
        response.reason = reason
        if body is None:
            response._content = b""
        elif isinstance(body, str):
            response._content = body.encode("utf-8")
        else:
            response._content = json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
        return response

    return _make
