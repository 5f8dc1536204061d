"""Shared pytest fixtures for the spanlight test suite."""

from __future__ import annotations

import pytest

from spanlight.config import Config


@pytest.fixture
def plain():
    """Config without colors, so output can be compared as text."""
    return Config(color_enabled=False)


@pytest.fixture
def four_lines():
    return "one\ntwo\nthree\nfour\n"
