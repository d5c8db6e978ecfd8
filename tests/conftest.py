"""Shared fixtures: keep tests away from the user's config and history."""
import os
import tempfile
import pytest


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    with tempfile.TemporaryDirectory() as d:
        monkeypatch.setenv("NEOSHELL_CONFIG", os.path.join(d, "config.json"))
        monkeypatch.delenv("NEOSHELL_USER", raising=False)
        monkeypatch.delenv("NEOSHELL_PASSWORD", raising=False)
        yield
