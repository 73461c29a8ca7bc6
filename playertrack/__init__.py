"""In-memory multiplayer position tracking service."""

__version__ = "0.1.0"
