"""Shared fixtures for apkconvert tests."""
from pathlib import Path

import pytest

from constants import Constants

TESTDATA = Path(__file__).parent / "testdata"


class FakeClient:
    """In-memory stand-in for HttpClient.

    ``responses`` maps a URI to a body (served with status 200) or to a
    ``(status, body)`` tuple; ``errors`` maps a URI to an exception to raise.
    Unknown URIs answer 404.
    """

    def __init__(self, responses=None, errors=None):
        self.responses = dict(responses or {})
        self.errors = dict(errors or {})
        self.calls = []

    def fetch(self, uri):
        self.calls.append(uri)
        if uri in self.errors:
            raise self.errors[uri]
        if uri not in self.responses:
            return 404, b""
        value = self.responses[uri]
        if isinstance(value, tuple):
            return value
        return 200, value


@pytest.fixture
def testdata():
    return TESTDATA


@pytest.fixture(autouse=True)
def restore_constants():
    """Config loading mutates Constants in place; put it back after each test."""
    saved = {k: v for k, v in vars(Constants).items() if k.isupper()}
    yield
    for key, value in saved.items():
        setattr(Constants, key, value)
