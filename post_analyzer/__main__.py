"""Run the post-analyzer HTTP server."""

import uvicorn

from post_analyzer.api import create_app
from post_analyzer.config import Settings
from post_analyzer.logger import get_logger, setup_logging

logger = get_logger(__name__)


def main() -> None:
    settings = Settings()
    setup_logging(settings.log_level)

    app = create_app(settings)

    logger.info(
        "Server is starting",
        extra_data={"host": settings.host, "port": settings.port},
    )
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
