"""Bootlog exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each ingestion stage raises a specific error type for debuggability.
"""

from __future__ import annotations


class BootlogError(Exception):
    """Base exception for all bootlog failures."""


class BootlogConfigError(BootlogError):
    """Raised for invalid runtime configuration."""


class BootlogIOError(BootlogError):
    """Raised for staging, archive, directory, or metadata file failures."""


class BootlogResolutionError(BootlogError):
    """Raised when no boot identifier can be resolved for a staged chunk."""


class BootlogConsistencyError(BootlogError):
    """Raised when a metadata record contradicts the incoming work item."""


class BootlogCancelledError(BootlogError):
    """Raised when an in-flight transfer is cancelled."""


class BootlogWorkSourceError(BootlogError):
    """Raised for unreadable or malformed work manifests."""
