"""
Webhook server setup.
"""

from aiohttp import web

from rebuilder.core.config import Settings
from rebuilder.core.logging import get_logger
from rebuilder.services.orchestrator import RebuildOrchestrator
from rebuilder.state.tasks import TaskTracker
from rebuilder.webhooks.github import (
    ORCHESTRATOR_KEY,
    SECRET_KEY,
    TRACKER_KEY,
    handle_push,
)

logger = get_logger(__name__)


def create_app(
    orchestrator: RebuildOrchestrator,
    tracker: TaskTracker,
    path: str = "/",
    webhook_secret: str | None = None,
) -> web.Application:
    """Build the aiohttp application with the single push endpoint."""
    app = web.Application()
    app[ORCHESTRATOR_KEY] = orchestrator
    app[TRACKER_KEY] = tracker
    if webhook_secret:
        app[SECRET_KEY] = webhook_secret
    # other methods on the same path get 405 from the router
    app.router.add_post(path, handle_push)
    return app


class WebhookServer:
    """Owns the listener, the orchestrator and the background tasks."""

    def __init__(self, settings: Settings, orchestrator: RebuildOrchestrator):
        self._settings = settings
        self.tracker = TaskTracker(settings.max_concurrent_rebuilds)
        self.app = create_app(
            orchestrator,
            self.tracker,
            path=settings.webhook_path,
            webhook_secret=settings.webhook_secret,
        )
        self._runner: web.AppRunner | None = None

    async def start(self) -> None:
        """
        Start the webhook server.
        """
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()

        site = web.TCPSite(self._runner, self._settings.host, self._settings.port)
        await site.start()

        logger.info(f"Webhook server started on {self._settings.host}:{self._settings.port}")

    async def drain(self) -> None:
        """Wait for all background rebuilds; the listener keeps serving meanwhile."""
        logger.info(f"Waiting for {len(self.tracker)} pending rebuilds to finish")
        await self.tracker.wait_all()

    async def stop(self) -> None:
        """Close the listener."""
        if self._runner is None:
            return
        logger.info("Shutting down server")
        await self._runner.cleanup()
        self._runner = None
