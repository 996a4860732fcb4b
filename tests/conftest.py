"""Pytest configuration for all tests."""

import os

import pytest


@pytest.fixture(autouse=True)
def clean_scaffold_env(monkeypatch):
    """Keep SCAFFOLD_* variables from the outer environment out of tests."""
    for key in list(os.environ):
        if key.upper().startswith("SCAFFOLD_"):
            monkeypatch.delenv(key, raising=False)
