"""Start the player tracking FastAPI server."""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

from playertrack.players.registry import IDENTITY_MODES
from playertrack.server.config import ServerConfig


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the server CLI."""
    parser = argparse.ArgumentParser(description="Run the player tracking server.")
    parser.add_argument("--host", default=None, help="Bind address (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Port number (default: 8000)")
    parser.add_argument(
        "--static-dir",
        type=Path,
        default=None,
        help="Directory served at / (default: dist)",
    )
    parser.add_argument(
        "--identity-mode",
        choices=IDENTITY_MODES,
        default=None,
        help="Address players by name or by generated numeric id",
    )
    parser.add_argument(
        "--no-credentials",
        action="store_true",
        help="Do not issue secrets; position updates are unauthenticated",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: INFO)")
    parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )
    return parser


def resolve_config(args: argparse.Namespace, base: ServerConfig | None = None) -> ServerConfig:
    """Overlay CLI arguments on the environment configuration."""
    config = base or ServerConfig.from_env()
    return config.with_overrides(
        host=args.host,
        port=args.port,
        static_dir=args.static_dir,
        identity_mode=args.identity_mode,
        issue_credentials=False if args.no_credentials else None,
        log_level=args.log_level,
    )


def main() -> None:
    """Run the server with uvicorn."""
    args = build_parser().parse_args()
    config = resolve_config(args)
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # The app factory reads its settings from the environment, which also
    # reaches reload workers.
    os.environ.update(config.to_env())

    import uvicorn

    uvicorn.run(
        "playertrack.server.api:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        reload=args.reload,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
