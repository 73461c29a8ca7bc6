"""In-memory player registry with per-player credentials."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import Callable

from playertrack.domain.errors import NameConflict, NotFound, Unauthorized
from playertrack.domain.models import Credential, Player, Position, Registration
from playertrack.interfaces import Identity
from playertrack.players.locks import ReadWriteLock

logger = logging.getLogger(__name__)

IdFactory = Callable[[], int]

IDENTITY_MODES = ("name", "id")
MAX_PLAYER_ID = 2_147_483_647


def _random_player_id() -> int:
    """Draw a candidate player id in [1, MAX_PLAYER_ID)."""
    return secrets.randbelow(MAX_PLAYER_ID - 1) + 1


def _is_canonical_id(text: object) -> bool:
    """Return True for plain ASCII decimal ids without leading zeros."""
    if not isinstance(text, str) or not (text.isascii() and text.isdigit()):
        return False
    return text == "0" or not text.startswith("0")


@dataclass
class _PlayerRecord:
    """Stored player plus the credential fixed at registration."""

    player: Player
    credential: Credential | None

    @property
    def requires_credential(self) -> bool:
        return self.credential is not None


class PlayerRegistry:
    """Authoritative store of players keyed by name or generated id.

    Reads (``list_players``, ``get_player``) share the lock; ``register`` and
    ``update_position`` hold it exclusively so that check-then-insert and
    check-then-update each happen as one critical section.
    """

    def __init__(
        self,
        identity_mode: str = "name",
        issue_credentials: bool = True,
        id_factory: IdFactory | None = None,
    ) -> None:
        """Initialize an empty registry."""
        if identity_mode not in IDENTITY_MODES:
            raise ValueError(f"Unknown identity mode: {identity_mode}")
        self.identity_mode = identity_mode
        self.issue_credentials = issue_credentials
        self._id_factory = id_factory or _random_player_id
        self._lock = ReadWriteLock()
        self._records: dict[Identity, _PlayerRecord] = {}
        self._names: set[str] = set()

    def register(self, name: str) -> Registration:
        """Create a player at the origin and issue its credential.

        Raises NameConflict when the name is already taken.
        """
        if not isinstance(name, str) or not name:
            raise ValueError("Player name must be a non-empty string")
        with self._lock.write():
            if name in self._names:
                logger.info("Rejected registration for taken name %r", name)
                raise NameConflict(f"Name is already in use: {name}")
            player_id = self._new_id() if self.identity_mode == "id" else None
            player = Player(name=name, position=Position(), id=player_id)
            credential = Credential.generate() if self.issue_credentials else None
            self._records[player.identity] = _PlayerRecord(player, credential)
            self._names.add(name)
        logger.info("Registered player %r (identity=%r)", name, player.identity)
        return Registration(player=player, credential=credential)

    def list_players(self) -> list[Player]:
        """Return a snapshot of all players in registration order."""
        with self._lock.read():
            return [record.player for record in self._records.values()]

    def get_player(self, identity: Identity) -> Player:
        """Return the player addressed by identity or raise NotFound."""
        with self._lock.read():
            return self._get_record(identity).player

    def update_position(
        self,
        identity: Identity,
        position: Position,
        credential: Credential | None = None,
    ) -> Player:
        """Move a player, enforcing its credential when one was issued."""
        with self._lock.write():
            record = self._get_record(identity)
            if record.requires_credential and not record.credential.matches(credential):
                logger.warning("Rejected position update for %r: bad credential", identity)
                raise Unauthorized("Invalid secret")
            record.player = record.player.moved_to(position)
            player = record.player
        logger.debug("Moved %r to (%s, %s)", identity, position.x, position.y)
        return player

    def clear(self) -> None:
        """Remove all players. Intended for tests and shutdown."""
        with self._lock.write():
            self._records.clear()
            self._names.clear()

    def __len__(self) -> int:
        """Return the number of registered players."""
        with self._lock.read():
            return len(self._records)

    def __contains__(self, identity: object) -> bool:
        """Return True when identity addresses a registered player."""
        with self._lock.read():
            return identity in self._records

    def _new_id(self) -> int:
        """Draw ids until one is unused. Caller must hold the write lock."""
        while True:
            candidate = self._id_factory()
            if candidate not in self._records:
                return candidate
            logger.debug("Generated player id %d collided, drawing again", candidate)

    def _get_record(self, identity: Identity) -> _PlayerRecord:
        """Look up a record. Caller must hold the lock."""
        key = self._normalize_identity(identity)
        record = self._records.get(key)
        if record is None:
            raise NotFound(f"Unknown player: {identity}")
        return record

    def _normalize_identity(self, identity: Identity) -> Identity:
        """Map a raw identity onto the key type used by this registry."""
        if self.identity_mode == "name":
            if not isinstance(identity, str):
                raise NotFound(f"Unknown player: {identity}")
            return identity
        if isinstance(identity, bool):
            raise NotFound(f"Unknown player: {identity}")
        if isinstance(identity, int):
            return identity
        if not _is_canonical_id(identity):
            raise NotFound(f"Unknown player: {identity}")
        return int(identity)
