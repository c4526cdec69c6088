"""API entrypoint.

Run with:
  python -m tiendita
"""

import logging
import os

import uvicorn

from .config import get_settings


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("tiendita.main:app", host=settings.http_host, port=settings.http_port)


if __name__ == "__main__":
    main()
