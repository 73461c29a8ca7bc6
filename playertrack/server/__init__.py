"""HTTP surface for the player registry."""

from playertrack.server.api import create_app
from playertrack.server.config import ServerConfig

__all__ = ["ServerConfig", "create_app"]
