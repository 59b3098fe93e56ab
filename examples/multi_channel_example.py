"""
Example script showing how to use the alert dispatcher.

This script demonstrates how to:
1. Build a dispatcher from configs/alerts.yaml
2. Run a health check against every channel
3. Send an error alert and inspect the report

Note: You need valid channel credentials (see configs/alerts.yaml) to run this script.
"""

import asyncio
import logging

import structlog

from multialert import AlertDispatcher, ConfigurationError


async def main():
    """Main example function."""
    # Set up logging
    logging.basicConfig(level=logging.INFO)
    structlog.configure(logger_factory=structlog.stdlib.LoggerFactory())
    logger = structlog.get_logger(__name__)

    try:
        dispatcher = AlertDispatcher.from_config_file("configs/alerts.yaml")
    except (FileNotFoundError, ConfigurationError) as e:
        logger.error("Could not load alert configuration", error=str(e))
        return

    logger.info("Dispatcher ready", channels=dispatcher.get_channels())

    health = await dispatcher.run_health_check()
    logger.info("Health check",
                healthy=health.summary.successful,
                total=health.summary.total)

    report = await dispatcher.error({
        'user_id': '123',
        'booking_id': 'BK456',
        'error_code': 'PAYMENT_FAILED',
        'message': 'Payment processing failed'
    })

    for result in report.results:
        if result.success:
            logger.info("✅ Delivered", channel=result.type)
        else:
            logger.warning("⚠️  Failed", channel=result.type, error=result.error)


if __name__ == "__main__":
    asyncio.run(main())
