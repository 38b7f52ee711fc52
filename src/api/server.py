"""Console entrypoint that serves the API with uvicorn."""

from __future__ import annotations

import uvicorn

from src.core.config import get_settings
from src.core.logger import configure_logging


def run() -> None:
    settings = get_settings()
    configure_logging()
    uvicorn.run(
        "src.api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
