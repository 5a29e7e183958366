"""Upstream record access, file loading and dashboard session state."""
