"""
Main entrypoint: FastAPI server for history and verification.

Env: FAIRPROOF_API_BASE, FAIRPROOF_PAGE_SIZE, FAIRPROOF_VERIFY_WORKERS, API_HOST, API_PORT, LOG_LEVEL.

Equivalent: uvicorn backend_fairproof.api_server.app:app --host 0.0.0.0 --port 8000
"""

import sys

# Configure structured JSON logging before other imports that may log
from backend_fairproof.fairproof_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Load settings and run the API server in the main thread."""
    from backend_fairproof.config.settings import get_settings
    from backend_fairproof.core.exceptions import ConfigError

    try:
        settings = get_settings()
    except ConfigError as e:
        logger.error("main_config_error", error=str(e))
        sys.exit(1)

    from backend_fairproof.api_server.app import app
    import uvicorn

    logger.info(
        "main_server_starting",
        host=settings.api_host,
        port=settings.api_port,
        api_base=settings.api_base,
    )
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
