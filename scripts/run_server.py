"""CLI entrypoint to serve the lock API."""

from __future__ import annotations

import argparse
from pathlib import Path

import uvicorn

from lockhub.app.main import create_app
from lockhub.core.settings import load_settings
from lockhub.utils.logging import get_logger


logger = get_logger("LockCLI")


def main() -> None:
    parser = argparse.ArgumentParser(description="Serve the lockhub HTTP API.")
    parser.add_argument("--config", type=Path, default=Path("config/lockhub.example.yml"), help="Path to service YAML")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=3000)
    args = parser.parse_args()

    settings = load_settings(args.config)
    logger.info("Store backend: %s (%s)", settings.store.backend, settings.store.redis_url)
    uvicorn.run(create_app(settings), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
