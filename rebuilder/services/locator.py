"""
Lookup of the Knative service that runs a given image.
"""

from rebuilder.core.exceptions import AmbiguousServiceError
from rebuilder.core.logging import get_logger
from rebuilder.models.resources import Service
from rebuilder.services.cluster import ClusterClient

logger = get_logger(__name__)


async def find_service(client: ClusterClient, namespace: str, image: str) -> Service | None:
    """
    Find the service whose user-image annotation equals ``image`` exactly.

    Returns:
        The matching service, or None if no service uses the image

    Raises:
        ListingError: If services cannot be listed
        AmbiguousServiceError: If several services use the image
    """
    services = await client.list_services(namespace)
    matches = [service for service in services if service.user_image == image]

    if len(matches) > 1:
        names = [service.name for service in matches]
        logger.error(f"Image {image} is claimed by several services in {namespace}: {names}")
        raise AmbiguousServiceError(image, names)

    return matches[0] if matches else None
