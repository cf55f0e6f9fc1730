"""Run the fleet monitor with uvicorn."""

import uvicorn

from fleetmon.config import settings


def main() -> None:
    uvicorn.run("fleetmon.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
