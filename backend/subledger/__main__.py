"""Run the API with uvicorn: `python -m subledger`."""

import uvicorn

from subledger.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "subledger.main:app",
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
