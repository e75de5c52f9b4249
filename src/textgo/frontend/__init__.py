"""Textual surfaces: interactive toolbar and result popup."""
