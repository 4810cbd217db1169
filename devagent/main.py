"""devagent main entry point.

Starts the FastAPI web server hosting the agent core.
"""

from __future__ import annotations

import uvicorn

from devagent.core.config import get_settings
from devagent.core.logging import get_logger, setup_logging


def main():
    """Entry point: starts the web server."""
    setup_logging()
    logger = get_logger("main")
    settings = get_settings()

    logger.info("=" * 60)
    logger.info("devagent starting")
    logger.info("=" * 60)

    if not settings.anthropic_api_key.strip():
        logger.warning("ANTHROPIC_API_KEY not set - Anthropic-backed roles run in demo mode")

    if not settings.openai_api_key.strip():
        logger.warning("OPENAI_API_KEY not set - OpenAI-backed roles run in demo mode")

    if settings.workspace_root:
        logger.info("Workspace root: %s", settings.workspace_root)
    else:
        logger.warning("WORKSPACE_ROOT not set - change summaries read paths as given")

    logger.info("Health: http://%s:%d/api/agent/health", settings.web_host, settings.web_port)

    config = uvicorn.Config(
        "devagent.web.server:app",
        host=settings.web_host,
        port=settings.web_port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
    server = uvicorn.Server(config)

    try:
        server.run()
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    main()
