"""
Application factory and main entry point.
"""

import asyncio
import signal
from datetime import timedelta

from rebuilder.core.config import Settings, settings
from rebuilder.core.logging import setup_logging, get_logger
from rebuilder.services.cluster import in_cluster_setup
from rebuilder.services.orchestrator import RebuildOrchestrator
from rebuilder.webhooks.server import WebhookServer

logger = get_logger(__name__)


def create_server(config: Settings = settings) -> WebhookServer:
    """Create the webhook server wired to the in-cluster orchestrator."""
    orchestrator = RebuildOrchestrator(
        lambda: in_cluster_setup(config),
        poll_interval=config.poll_interval,
        default_timeout=timedelta(seconds=config.default_build_run_timeout),
    )
    return WebhookServer(config, orchestrator)


async def main() -> None:
    """Main application entry point."""
    setup_logging(settings.log_level)
    logger.info("Starting rebuilder...")

    server = create_server(settings)
    await server.start()

    stop_signal = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_signal.set)

    await stop_signal.wait()
    logger.info("Received stop signal, waiting for all pending work to finish")

    try:
        await server.drain()
    finally:
        await server.stop()
