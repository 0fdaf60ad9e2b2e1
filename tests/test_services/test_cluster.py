"""
Tests for the cluster client and in-cluster setup.
"""

import pytest
from unittest.mock import patch, AsyncMock, MagicMock
import httpx


def _response(payload, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.raise_for_status = MagicMock()
    return response


def _status_error(status_code):
    request = httpx.Request("GET", "https://10.96.0.1:6443/apis")
    response = httpx.Response(status_code, request=request, text="denied")
    return httpx.HTTPStatusError("error", request=request, response=response)


class TestClusterClient:
    """Tests for ClusterClient class."""

    def test_init(self, cluster_client):
        """Test client initialization."""
        assert cluster_client._base_url == "https://10.96.0.1:6443"
        assert cluster_client._headers["Authorization"] == "Bearer sa-token"

    @pytest.mark.asyncio
    async def test_list_builds(self, cluster_client, build_factory):
        """Test listing builds parses every item."""
        payload = {"items": [build_factory("a"), build_factory("b")]}

        with patch("httpx.AsyncClient") as mock_client:
            request = AsyncMock(return_value=_response(payload))
            mock_client.return_value.__aenter__.return_value.request = request

            builds = await cluster_client.list_builds("apps")

        assert [b.name for b in builds] == ["a", "b"]
        method, url = request.call_args.args
        assert method == "GET"
        assert url == "https://10.96.0.1:6443/apis/shipwright.io/v1beta1/namespaces/apps/builds"

    @pytest.mark.asyncio
    async def test_list_services_empty(self, cluster_client):
        """Test a list without items."""
        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.request = AsyncMock(
                return_value=_response({"items": None})
            )

            services = await cluster_client.list_services("apps")

        assert services == []

    @pytest.mark.asyncio
    async def test_list_error_raises_listing_error(self, cluster_client):
        """Test that a failed list raises ListingError."""
        from rebuilder.core.exceptions import ListingError

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.request = AsyncMock(
                side_effect=httpx.ConnectError("refused")
            )

            with pytest.raises(ListingError):
                await cluster_client.list_build_runs("apps")

    @pytest.mark.asyncio
    async def test_status_error_carries_status_code(self, cluster_client):
        """Test HTTP errors keep the status code."""
        from rebuilder.core.exceptions import ListingError

        response = _response({})
        response.raise_for_status.side_effect = _status_error(403)

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.request = AsyncMock(return_value=response)

            with pytest.raises(ListingError) as exc_info:
                await cluster_client.list_builds("apps")

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_get_error_is_cluster_api_error(self, cluster_client):
        """Test a failed get raises the generic ClusterAPIError."""
        from rebuilder.core.exceptions import ClusterAPIError, ListingError

        response = _response({})
        response.raise_for_status.side_effect = _status_error(404)

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.request = AsyncMock(return_value=response)

            with pytest.raises(ClusterAPIError) as exc_info:
                await cluster_client.get_build("apps", "missing")

        assert not isinstance(exc_info.value, ListingError)

    @pytest.mark.asyncio
    async def test_create_build_run(self, cluster_client, build_run_factory):
        """Test creating a build-run posts the body."""
        created = build_run_factory("rebuild-app-x1y2z")
        body = {"metadata": {"generateName": "rebuild-app-"}, "spec": {"build": {"name": "app"}}}

        with patch("httpx.AsyncClient") as mock_client:
            request = AsyncMock(return_value=_response(created, 201))
            mock_client.return_value.__aenter__.return_value.request = request

            run = await cluster_client.create_build_run("apps", body)

        assert run.name == "rebuild-app-x1y2z"
        assert request.call_args.args[0] == "POST"
        assert request.call_args.kwargs["json"] == body

    @pytest.mark.asyncio
    async def test_create_error_raises_creation_error(self, cluster_client):
        """Test a rejected create raises CreationError."""
        from rebuilder.core.exceptions import CreationError

        response = _response({})
        response.raise_for_status.side_effect = _status_error(422)

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.request = AsyncMock(return_value=response)

            with pytest.raises(CreationError):
                await cluster_client.create_build_run("apps", {})

    @pytest.mark.asyncio
    async def test_update_service_error_raises_nudge_error(self, cluster_client):
        """Test a rejected update raises NudgeError."""
        from rebuilder.core.exceptions import NudgeError

        response = _response({})
        response.raise_for_status.side_effect = _status_error(409)

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.request = AsyncMock(return_value=response)

            with pytest.raises(NudgeError) as exc_info:
                await cluster_client.update_service("apps", "web", {})

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self, cluster_client):
        """Test a non-JSON body is reported as an API error."""
        from rebuilder.core.exceptions import ClusterAPIError

        response = _response(None)
        response.json.side_effect = ValueError("not json")

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.request = AsyncMock(return_value=response)

            with pytest.raises(ClusterAPIError):
                await cluster_client.get_build_run("apps", "run-1")


class TestInClusterSetup:
    """Tests for in_cluster_setup."""

    def _settings(self, tmp_path, namespace="apps\n", token="sa-token"):
        from rebuilder.core.config import Settings

        if namespace is not None:
            (tmp_path / "namespace").write_text(namespace)
        if token is not None:
            (tmp_path / "token").write_text(token)
        return Settings(
            namespace_file=str(tmp_path / "namespace"),
            token_file=str(tmp_path / "token"),
            ca_file=str(tmp_path / "ca.crt"),
        )

    def test_setup(self, tmp_path):
        """Test namespace and client are read from the service account files."""
        from rebuilder.services.cluster.setup import in_cluster_setup

        ctx = in_cluster_setup(self._settings(tmp_path))

        assert ctx.namespace == "apps"
        assert ctx.client._base_url == "https://10.96.0.1:6443"
        assert ctx.client._headers["Authorization"] == "Bearer sa-token"

    def test_missing_namespace_file_raises(self, tmp_path):
        """Test a missing namespace file."""
        from rebuilder.core.exceptions import ClientSetupError
        from rebuilder.services.cluster.setup import in_cluster_setup

        with pytest.raises(ClientSetupError):
            in_cluster_setup(self._settings(tmp_path, namespace=None))

    def test_empty_token_raises(self, tmp_path):
        """Test an empty token file."""
        from rebuilder.core.exceptions import ClientSetupError
        from rebuilder.services.cluster.setup import in_cluster_setup

        with pytest.raises(ClientSetupError):
            in_cluster_setup(self._settings(tmp_path, token=""))

    def test_missing_host_raises(self, tmp_path, monkeypatch):
        """Test running outside a cluster."""
        from rebuilder.core.exceptions import ClientSetupError
        from rebuilder.services.cluster.setup import in_cluster_setup

        monkeypatch.delenv("KUBERNETES_SERVICE_HOST")

        with pytest.raises(ClientSetupError):
            in_cluster_setup(self._settings(tmp_path))
