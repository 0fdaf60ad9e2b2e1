"""
In-cluster discovery of the namespace and API client.
"""

from dataclasses import dataclass

from rebuilder.core.config import Settings
from rebuilder.core.exceptions import ClientSetupError
from .client import ClusterClient


@dataclass
class ClusterContext:
    """Namespace and client for one request."""

    namespace: str
    client: ClusterClient


def _read(path: str, what: str) -> str:
    try:
        with open(path, encoding="utf-8") as fh:
            value = fh.read().strip()
    except OSError as e:
        raise ClientSetupError(f"cannot read {what} from {path}: {e}") from e
    if not value:
        raise ClientSetupError(f"{what} file {path} is empty")
    return value


def in_cluster_setup(settings: Settings) -> ClusterContext:
    """
    Read the service account namespace and token and build a cluster client.

    Raises:
        ClientSetupError: If any piece of the in-cluster environment is missing
    """
    namespace = _read(settings.namespace_file, "namespace")

    base_url = settings.api_server_url
    if not base_url:
        raise ClientSetupError("KUBERNETES_SERVICE_HOST is not set")

    token = _read(settings.token_file, "service account token")
    client = ClusterClient(base_url, token, ca_file=settings.ca_file, timeout=settings.api_timeout)
    return ClusterContext(namespace=namespace, client=client)
