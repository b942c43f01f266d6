"""Run the API with uvicorn: `python -m geopatrol`."""

import uvicorn

from geopatrol.config import settings


def main() -> None:
    uvicorn.run(
        "geopatrol.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
