from __future__ import annotations

import uvicorn

from microchess.config import Settings


def main() -> None:
    settings = Settings.load()
    uvicorn.run(
        "microchess.protocol.http.app:create_app",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
