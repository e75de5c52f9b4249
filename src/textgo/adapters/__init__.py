"""Concrete collaborators plugged into the core ports."""
