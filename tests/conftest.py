"""
Shared pytest fixtures.
"""
import pytest

from triage.sos_store import SOSStore
from triage.validators import SOSForm


@pytest.fixture
def store():
    """A fresh in-memory store per test."""
    s = SOSStore(news_max_items=50)
    yield s
    s.close()


@pytest.fixture
def make_form():
    """Build a valid SOSForm, overriding any field."""

    def _make(**overrides):
        data = {
            "name": "Asha Rao",
            "age": "30",
            "phone": "98765 43210",
            "description": "",
        }
        data.update(overrides)
        if not data["description"]:
            data["description"] = "need some assistance"
        return SOSForm(**data)

    return _make
