"""FastAPI endpoints for registering and moving players."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field, field_validator
from starlette.exceptions import HTTPException as StarletteHTTPException

from playertrack import __version__
from playertrack.domain.errors import NameConflict, NotFound, RegistryError, Unauthorized
from playertrack.domain.models import Credential, Player, Position
from playertrack.interfaces import PlayerStore
from playertrack.players.registry import PlayerRegistry
from playertrack.server.config import ServerConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Pydantic request / response models
# ---------------------------------------------------------------------------


class PositionModel(BaseModel):
    x: float = Field(..., allow_inf_nan=False)
    y: float = Field(..., allow_inf_nan=False)


class CreatePlayerRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Unique display name")


class UpdatePlayerRequest(BaseModel):
    position: PositionModel
    secret: int | str | None = Field(
        default=None,
        description="Secret issued at registration, as a number or decimal string",
    )

    @field_validator("secret")
    @classmethod
    def _check_secret(cls, value: int | str | None) -> int | str | None:
        if value is not None:
            Credential.parse(value)
        return value


class PlayerView(BaseModel):
    name: str
    position: PositionModel
    id: int | None = None


class RegistrationView(BaseModel):
    player: PlayerView
    secret: str


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

_ERROR_STATUS: tuple[tuple[type[RegistryError], int], ...] = (
    (NameConflict, 403),
    (NotFound, 404),
    (Unauthorized, 401),
)


def create_app(
    store: PlayerStore | None = None,
    config: ServerConfig | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    cfg = config or ServerConfig.from_env()
    app = FastAPI(title="Player Tracker", version=__version__)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if store is None:
        store = PlayerRegistry(
            identity_mode=cfg.identity_mode,
            issue_credentials=cfg.issue_credentials,
        )
    svc = store
    app.state.store = svc
    app.state.config = cfg

    _install_error_handlers(app)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post(
        "/players",
        response_model=RegistrationView | PlayerView,
        response_model_exclude_none=True,
        status_code=201,
    )
    def create_player(req: CreatePlayerRequest) -> RegistrationView | PlayerView:
        registration = svc.register(req.name)
        player = _player_view(registration.player)
        if registration.credential is None:
            return player
        return RegistrationView(player=player, secret=registration.credential.to_wire())

    @app.get(
        "/players",
        response_model=list[PlayerView],
        response_model_exclude_none=True,
    )
    def list_players() -> list[PlayerView]:
        return [_player_view(player) for player in svc.list_players()]

    @app.get(
        "/players/{identity:path}",
        response_model=PlayerView,
        response_model_exclude_none=True,
    )
    def get_player(identity: str) -> PlayerView:
        return _player_view(svc.get_player(identity))

    @app.patch(
        "/players/{identity:path}",
        response_model=PlayerView,
        response_model_exclude_none=True,
    )
    def update_player(identity: str, req: UpdatePlayerRequest) -> PlayerView:
        position = Position(x=req.position.x, y=req.position.y)
        player = svc.update_position(identity, position, _parse_secret(req.secret))
        return _player_view(player)

    # Mounted last so the API routes above win over static paths.
    static_dir = cfg.static_dir
    if static_dir is not None and static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
        logger.info("Serving static files from %s", static_dir)
    elif static_dir is not None:
        logger.info("Static directory %s not found; skipping mount", static_dir)

    return app


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _install_error_handlers(app: FastAPI) -> None:
    """Render every error as a single ``{"error": message}`` body."""

    @app.exception_handler(RegistryError)
    async def registry_error(request: Request, exc: RegistryError) -> JSONResponse:
        return _error_response(_status_for(exc), str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error_response(exc.status_code, str(exc.detail), exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error_response(422, _describe_validation(exc.errors()))


def _status_for(exc: RegistryError) -> int:
    """Return the HTTP status code for a registry error."""
    for error_cls, status in _ERROR_STATUS:
        if isinstance(exc, error_cls):
            return status
    return 400


def _error_response(
    status_code: int, message: str, headers: dict[str, str] | None = None
) -> JSONResponse:
    """Build a JSON error response with a single error field."""
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def _describe_validation(errors: Any) -> str:
    """Flatten pydantic validation errors into one readable line."""
    parts = []
    for err in errors:
        location = ".".join(str(item) for item in err.get("loc", ()) if item != "body")
        message = err.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Invalid request"


def _parse_secret(raw: int | str | None) -> Credential | None:
    """Convert the wire secret (already validated) into a Credential."""
    if raw is None:
        return None
    return Credential.parse(raw)


def _player_view(player: Player) -> PlayerView:
    """Convert a domain Player into a response model."""
    return PlayerView(
        name=player.name,
        position=PositionModel(x=player.position.x, y=player.position.y),
        id=player.id,
    )
