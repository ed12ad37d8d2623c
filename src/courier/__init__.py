import logging

import uvicorn

from courier.config import Settings


def main() -> None:
    """Entry point using uvicorn directly."""
    settings = Settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(
        "courier.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
    )
