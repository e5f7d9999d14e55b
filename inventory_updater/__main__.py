"""Run the inventory updater: ``python -m inventory_updater``."""

from __future__ import annotations

import uvicorn

from inventory_updater.app import configure_logging, create_app
from inventory_updater.config import get_settings


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
