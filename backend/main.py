"""Process entry point: ``python -m backend.main`` or the ``sap-relay`` script.

``backend.app`` only exposes the ``create_app`` factory, so this module is the
entry point (``uvicorn --factory backend.app:create_app`` also works).
"""
from __future__ import annotations

import logging

import uvicorn

from backend.app import create_app
from backend.config import Settings, configure_logging

logger = logging.getLogger(__name__)

UVICORN_LEVELS = {"critical", "error", "warning", "info", "debug", "trace"}


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    app = create_app(settings)
    logger.info("Server running on port %s", settings.port)
    level = settings.log_level.lower()
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_level=level if level in UVICORN_LEVELS else "info")


if __name__ == "__main__":
    main()
