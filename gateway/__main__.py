from __future__ import annotations

import uvicorn

from gateway.core.config import SETTINGS


def main() -> None:
    # log_config=None: keep the handlers installed by setup_logging()
    uvicorn.run(
        "gateway.main:app",
        host="0.0.0.0",
        port=SETTINGS.port,
        log_config=None,
        reload=SETTINGS.is_dev,
    )


if __name__ == "__main__":
    main()
