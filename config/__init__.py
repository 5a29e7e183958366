"""Configuration constants and logging setup."""
