# tests/conftest.py

from unittest.mock import MagicMock

import pytest


@pytest.fixture
def make_response():
    """
    Returns a factory for fake ``requests`` responses, as seen by the providers.
    """
    def _make(status_code=200, payload=None, text="provider error"):
        response = MagicMock()
        response.ok = 200 <= status_code < 300
        response.status_code = status_code
        response.text = text
        response.json.return_value = payload
        return response

    return _make
