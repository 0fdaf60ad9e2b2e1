"""
Forcing a new Knative revision by touching the service template.
"""

import copy
from collections.abc import Callable
from datetime import datetime, timezone

from rebuilder.core.exceptions import NudgeError
from rebuilder.core.logging import get_logger
from rebuilder.models.resources import Service
from rebuilder.services.cluster import ClusterClient

logger = get_logger(__name__)

UPDATE_TIMESTAMP_ANNOTATION = "client.knative.dev/updateTimestamp"


def utc_now_rfc3339() -> str:
    """Return the current UTC time as ``YYYY-MM-DDTHH:MM:SSZ``."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def nudged_body(service: Service, timestamp: str) -> dict:
    """Copy of the service object with the update timestamp annotation set."""
    body = copy.deepcopy(service.raw)
    spec = body.setdefault("spec", {})
    template = spec.setdefault("template", {})
    metadata = template.get("metadata") or {}
    annotations = metadata.get("annotations") or {}
    annotations[UPDATE_TIMESTAMP_ANNOTATION] = timestamp
    metadata["annotations"] = annotations
    template["metadata"] = metadata
    return body


async def nudge_service(
    client: ClusterClient,
    service: Service,
    now_fn: Callable[[], str] = utc_now_rfc3339,
) -> bool:
    """
    Set the update timestamp annotation so Knative rolls out a new revision.

    Update failures are logged and not retried.

    Returns:
        True if the service was updated
    """
    logger.info(f"Nudging Knative service {service.name} to force a new revision")

    body = nudged_body(service, now_fn())
    try:
        await client.update_service(service.namespace, service.name, body)
    except NudgeError as e:
        logger.error(f"Failed to update service {service.name}: {e}")
        return False

    return True
