from __future__ import annotations


class RegistryError(Exception):
    """Base class for failures reported by the player registry."""


class NameConflict(RegistryError):
    """Raised when a registration uses a name that is already taken."""


class NotFound(RegistryError):
    """Raised when no player matches the requested identity."""


class Unauthorized(RegistryError):
    """Raised when a position update carries a missing or wrong secret."""
