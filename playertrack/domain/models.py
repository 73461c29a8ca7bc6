from __future__ import annotations

import math
import secrets
from dataclasses import dataclass, field

CREDENTIAL_BITS = 64
_CREDENTIAL_LIMIT = 1 << CREDENTIAL_BITS


@dataclass(frozen=True)
class Position:
    """Point on the game board; defaults to the origin."""

    x: float = 0.0
    y: float = 0.0

    def __post_init__(self) -> None:
        if not (math.isfinite(self.x) and math.isfinite(self.y)):
            raise ValueError("Position coordinates must be finite")
        object.__setattr__(self, "x", float(self.x))
        object.__setattr__(self, "y", float(self.y))


@dataclass(frozen=True)
class Player:
    """Immutable snapshot of a registered player."""

    name: str
    position: Position = field(default_factory=Position)
    id: int | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("Player name must be a non-empty string")

    @property
    def identity(self) -> str | int:
        """Return the key the registry addresses this player by."""
        return self.name if self.id is None else self.id

    def moved_to(self, position: Position) -> "Player":
        """Return a copy of this player at a new position."""
        return Player(name=self.name, position=position, id=self.id)


@dataclass(frozen=True)
class Credential:
    """Opaque 64-bit bearer secret bound to one player.

    The value is kept out of ``repr`` so a credential can pass through log
    records and tracebacks without leaking.
    """

    value: int = field(repr=False)

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError("Credential value must be an integer")
        if not (0 <= self.value < _CREDENTIAL_LIMIT):
            raise ValueError("Credential value must fit in 64 unsigned bits")

    @staticmethod
    def generate() -> "Credential":
        """Return a fresh random credential."""
        return Credential(secrets.randbits(CREDENTIAL_BITS))

    @staticmethod
    def parse(raw: int | str) -> "Credential":
        """Build a credential from its wire form (integer or decimal string)."""
        if isinstance(raw, str):
            text = raw.strip()
            if not (text.isascii() and text.isdigit()):
                raise ValueError("Credential must be a decimal number")
            return Credential(int(text))
        return Credential(raw)

    def matches(self, other: "Credential | None") -> bool:
        """Compare against a caller-supplied credential in constant time."""
        if other is None:
            return False
        return secrets.compare_digest(self._as_bytes(), other._as_bytes())

    def to_wire(self) -> str:
        """Return the decimal string sent to clients."""
        return str(self.value)

    def _as_bytes(self) -> bytes:
        return self.value.to_bytes(CREDENTIAL_BITS // 8, "big")


@dataclass(frozen=True)
class Registration:
    """Result of a successful registration.

    ``credential`` is only ever handed out here; later reads of the player
    never include it.
    """

    player: Player
    credential: Credential | None = None
