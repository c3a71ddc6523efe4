"""Run the counter agent: ``python -m counter_agent``.

Exits 0 after a signal-triggered shutdown and 1 if startup fails.
"""

import sys

import uvicorn

from counter_agent.config import get_settings
from counter_agent.main import create_app


def main() -> int:
    settings = get_settings()
    app = create_app(settings)
    config = uvicorn.Config(
        app,
        host=settings.service_host,
        port=settings.service_port,
        lifespan="on",
        log_config=None,
    )
    server = uvicorn.Server(config)
    server.run()
    # uvicorn handles SIGINT/SIGTERM and runs the lifespan shutdown
    return 0 if server.started else 1


if __name__ == "__main__":
    sys.exit(main())
