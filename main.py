"""
Main application entry point for the Universal Agent Gateway.
"""

import logging

import uvicorn

from agent_gateway.config import Settings, configure_logging

logger = logging.getLogger(__name__)


def main():
    """Main entry point."""
    try:
        settings = Settings.from_env()
    except ValueError as e:
        configure_logging()
        logger.error(str(e))
        logger.error("Please check your .env file")
        return

    configure_logging(settings.log_level)

    if not settings.app_url:
        logger.warning("SHOPIFY_APP_URL is not set; UCP documents will advertise relative endpoints")

    logger.info(f"Starting server on {settings.host}:{settings.port}")

    # Run the application
    uvicorn.run(
        "agent_gateway.app:create_application",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
