"""Shared constants for the Textual UI."""

from __future__ import annotations

ACCENT = "#7C5CFF"
