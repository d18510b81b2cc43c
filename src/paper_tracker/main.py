"""Entry point: ``paper-tracker`` or ``python -m paper_tracker.main``."""

from __future__ import annotations

import logging

import uvicorn

from paper_tracker.infrastructure.config import get_settings

LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"


def main() -> None:
    settings = get_settings()
    level = settings.log_level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # httpx logs every request at INFO, including URLs with project ids
    logging.getLogger("httpx").setLevel(logging.WARNING)

    uvicorn.run(
        "paper_tracker.interface.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=level.lower(),
    )


if __name__ == "__main__":
    main()
