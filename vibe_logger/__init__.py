"""Vibe Logger: persist coding-session context into Google Docs."""

__version__ = "0.1.0"
