"""Shared constants and fixture builders used by both scripts and tests.

This package provides a location for code that needs to be shared across
packages without creating circular imports.
"""

from __future__ import annotations
