"""
Custom application exceptions.
"""

from datetime import timedelta


class RebuilderError(Exception):
    """Base exception for rebuilder errors."""
    pass


class ClientSetupError(RebuilderError):
    """Namespace or cluster API client could not be obtained."""
    pass


class InvalidEventError(RebuilderError):
    """Inbound webhook payload is not a usable push event."""
    pass


class AmbiguousServiceError(RebuilderError):
    """More than one service carries the same image annotation."""

    def __init__(self, image: str, names: list[str]):
        super().__init__(f"image {image} is used by several services: {', '.join(names)}")
        self.image = image
        self.names = names


class ClusterAPIError(RebuilderError):
    """Cluster API call failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ListingError(ClusterAPIError):
    """Listing cluster resources failed."""
    pass


class CreationError(ClusterAPIError):
    """Creating a build-run failed."""
    pass


class NudgeError(ClusterAPIError):
    """Updating a service failed."""
    pass


class WaitError(RebuilderError):
    """Build-run did not reach a successful terminal state."""
    pass


class WaitTimeoutError(WaitError):
    """Build-run did not finish within its timeout."""

    def __init__(self, name: str, timeout: timedelta):
        super().__init__(f"build-run {name} did not finish within {timeout}")
        self.name = name
        self.timeout = timeout


class ExecutionFailedError(WaitError):
    """Build-run finished with a failed Succeeded condition."""

    def __init__(self, name: str, message: str, reason: str | None = None):
        super().__init__(message or f"build-run {name} failed")
        self.name = name
        self.reason = reason
        self.message = message
