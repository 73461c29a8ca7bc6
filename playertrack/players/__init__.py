"""Player storage and access control."""

from playertrack.players.locks import ReadWriteLock
from playertrack.players.registry import IDENTITY_MODES, IdFactory, PlayerRegistry

__all__ = ["IDENTITY_MODES", "IdFactory", "PlayerRegistry", "ReadWriteLock"]
