from .errors import NameConflict, NotFound, RegistryError, Unauthorized
from .models import CREDENTIAL_BITS, Credential, Player, Position, Registration

__all__ = [
    "Position",
    "Player",
    "Credential",
    "Registration",
    "CREDENTIAL_BITS",
    "RegistryError",
    "NameConflict",
    "NotFound",
    "Unauthorized",
]
