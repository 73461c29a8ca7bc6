"""Shared interface definitions to keep APIs consistent across the codebase."""

from __future__ import annotations

from typing import Protocol

from playertrack.domain.models import Credential, Player, Position, Registration

Identity = str | int


class PlayerStore(Protocol):
    """Store API the HTTP layer drives."""

    def register(self, name: str) -> Registration:
        """Create a player and return it with its one-time credential."""

    def list_players(self) -> list[Player]:
        """Return a snapshot of every registered player."""

    def get_player(self, identity: Identity) -> Player:
        """Return the player addressed by ``identity``."""

    def update_position(
        self,
        identity: Identity,
        position: Position,
        credential: Credential | None = None,
    ) -> Player:
        """Move a player, checking its credential when it has one."""
