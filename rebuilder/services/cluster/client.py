"""
Kubernetes REST client for the Shipwright and Knative resources.
"""

from __future__ import annotations

import ssl
from typing import Any

import httpx

from rebuilder.core.exceptions import (
    ClusterAPIError,
    CreationError,
    ListingError,
    NudgeError,
)
from rebuilder.core.logging import get_logger
from rebuilder.models.resources import Build, BuildRun, Service

logger = get_logger(__name__)

SHIPWRIGHT_API = "/apis/shipwright.io/v1beta1"
SERVING_API = "/apis/serving.knative.dev/v1"


class ClusterClient:
    """HTTP client for the cluster API server."""

    def __init__(
        self,
        base_url: str,
        token: str,
        ca_file: str | bool = True,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._ca_file = ca_file
        self._ssl_context: ssl.SSLContext | None = None
        self._timeout = timeout
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }

    def _verify(self) -> ssl.SSLContext | bool:
        if not isinstance(self._ca_file, str):
            return self._ca_file
        if self._ssl_context is None:
            self._ssl_context = ssl.create_default_context(cafile=self._ca_file)
        return self._ssl_context

    async def _request(
        self,
        method: str,
        path: str,
        *,
        error: type[ClusterAPIError] = ClusterAPIError,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self._base_url}{path}"

        try:
            async with httpx.AsyncClient(verify=self._verify(), timeout=self._timeout) as client:
                response = await client.request(method, url, json=payload, headers=self._headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.error("Cluster API error %s on %s %s: %s", status, method, path, exc.response.text)
            raise error(f"{method} {path} failed with status {status}", status_code=status) from exc
        except httpx.RequestError as exc:
            logger.error("Cluster API request %s %s failed: %s", method, path, exc)
            raise error(f"{method} {path} failed: {exc}") from exc
        except OSError as exc:
            logger.error("Cannot load CA bundle %s: %s", self._ca_file, exc)
            raise error(f"cannot load CA bundle {self._ca_file}: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise error(f"{method} {path} returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise error(f"{method} {path} returned unexpected payload")

        return data

    async def _list(self, path: str) -> list[dict[str, Any]]:
        data = await self._request("GET", path, error=ListingError)
        return [item for item in data.get("items") or [] if isinstance(item, dict)]

    # --- Shipwright builds ---

    async def list_builds(self, namespace: str) -> list[Build]:
        items = await self._list(f"{SHIPWRIGHT_API}/namespaces/{namespace}/builds")
        return [Build.from_dict(item) for item in items]

    async def get_build(self, namespace: str, name: str) -> Build:
        data = await self._request("GET", f"{SHIPWRIGHT_API}/namespaces/{namespace}/builds/{name}")
        return Build.from_dict(data)

    # --- Shipwright build-runs ---

    async def list_build_runs(self, namespace: str) -> list[BuildRun]:
        items = await self._list(f"{SHIPWRIGHT_API}/namespaces/{namespace}/buildruns")
        return [BuildRun.from_dict(item) for item in items]

    async def get_build_run(self, namespace: str, name: str) -> BuildRun:
        data = await self._request("GET", f"{SHIPWRIGHT_API}/namespaces/{namespace}/buildruns/{name}")
        return BuildRun.from_dict(data)

    async def create_build_run(self, namespace: str, body: dict[str, Any]) -> BuildRun:
        """
        Create a build-run.

        Raises:
            CreationError: If the API server rejects the object
        """
        data = await self._request(
            "POST",
            f"{SHIPWRIGHT_API}/namespaces/{namespace}/buildruns",
            error=CreationError,
            payload=body,
        )
        return BuildRun.from_dict(data)

    # --- Knative services ---

    async def list_services(self, namespace: str) -> list[Service]:
        items = await self._list(f"{SERVING_API}/namespaces/{namespace}/services")
        return [Service.from_dict(item) for item in items]

    async def update_service(self, namespace: str, name: str, body: dict[str, Any]) -> Service:
        """
        Replace a service object.

        Raises:
            NudgeError: If the update is rejected
        """
        data = await self._request(
            "PUT",
            f"{SERVING_API}/namespaces/{namespace}/services/{name}",
            error=NudgeError,
            payload=body,
        )
        return Service.from_dict(data)
