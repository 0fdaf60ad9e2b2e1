"""
Data model for inbound push notifications.
"""

from dataclasses import dataclass
from typing import Any

from rebuilder.core.exceptions import InvalidEventError


def normalize_repo_ref(url: str) -> str:
    """Strip one trailing ``.git`` so clone URLs compare against declared sources."""
    return url.removesuffix(".git")


@dataclass
class Repository:
    """Repository the push was made to."""

    clone_url: str

    @property
    def ref(self) -> str:
        """Repository reference used for matching build sources."""
        return normalize_repo_ref(self.clone_url)


@dataclass
class PushEvent:
    """Push notification sent by the git hosting service."""

    repository: Repository
    ref: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "PushEvent":
        """
        Build an event from a decoded JSON payload.

        Raises:
            InvalidEventError: If the payload has no usable repository clone URL
        """
        if not isinstance(data, dict):
            raise InvalidEventError("payload is not a JSON object")

        repo = data.get("repository")
        if not isinstance(repo, dict):
            raise InvalidEventError("payload has no repository object")

        clone_url = repo.get("clone_url")
        if not isinstance(clone_url, str) or not normalize_repo_ref(clone_url):
            raise InvalidEventError("repository has no clone_url")

        return cls(
            repository=Repository(clone_url=clone_url),
            ref=str(data.get("ref") or ""),
        )
