"""Serve the WavePulse assistant API with uvicorn."""

import uvicorn

from wavepulse.api.app import create_app
from wavepulse.config.settings import Settings
from wavepulse.observability.logger import get_logger, setup_logging

logger = get_logger("main")


def main() -> None:
    settings = Settings()
    setup_logging(settings.log_level, settings.log_json)
    logger.info(
        "serving",
        host=settings.host,
        port=settings.port,
        command_backend=settings.command_backend,
    )
    uvicorn.run(
        create_app(),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
