"""
Push webhook handler.
"""

import hashlib
import hmac
import json

from aiohttp import web

from rebuilder.core.exceptions import InvalidEventError
from rebuilder.core.logging import get_logger
from rebuilder.models.event import PushEvent
from rebuilder.services.orchestrator import RebuildOrchestrator
from rebuilder.state.tasks import TaskTracker

logger = get_logger(__name__)

ORCHESTRATOR_KEY = web.AppKey("orchestrator", RebuildOrchestrator)
TRACKER_KEY = web.AppKey("tracker", TaskTracker)
SECRET_KEY = web.AppKey("webhook_secret", str)


def verify_signature(secret: str, body: bytes, signature: str | None) -> bool:
    """Check an ``X-Hub-Signature-256`` header against the request body."""
    if not signature:
        return False
    expected = "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(signature, expected)


async def handle_push(request: web.Request) -> web.Response:
    """Handle a repository push notification."""
    body = await request.read()

    secret = request.app.get(SECRET_KEY)
    if secret and not verify_signature(secret, body, request.headers.get("X-Hub-Signature-256")):
        logger.warning("Rejected webhook with missing or invalid signature")
        return web.Response(status=401)

    try:
        event = PushEvent.from_dict(json.loads(body))
    except (ValueError, InvalidEventError) as e:
        logger.warning(f"Rejected malformed webhook payload: {e}")
        return web.Response(status=400)

    repo = event.repository.ref
    logger.info(f"Push to {event.ref or 'unknown ref'}, checking for build or build-run that covers {repo}")

    dispatch = await request.app[ORCHESTRATOR_KEY].dispatch(repo)
    if dispatch.job is not None:
        request.app[TRACKER_KEY].track(dispatch.job, name=f"rebuild {repo}")

    return web.Response(status=dispatch.status)
