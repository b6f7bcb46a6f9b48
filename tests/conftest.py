"""Pytest configuration for repository test runs."""

from __future__ import annotations

import pytest

from core.config import BootlogConfig


@pytest.fixture
def small_buffer_config() -> BootlogConfig:
    """Config with tiny buffers so transfers span many reads and writes."""
    return BootlogConfig(buffer_size=8)
