"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import pytest
from unittest.mock import AsyncMock, MagicMock

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


# ============================================================================
# Environment Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def mock_env(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("KUBERNETES_SERVICE_HOST", "10.96.0.1")
    monkeypatch.setenv("KUBERNETES_SERVICE_PORT", "6443")
    for name in ("HOST", "PORT", "WEBHOOK_PATH", "WEBHOOK_SECRET", "LOG_LEVEL", "POLL_INTERVAL",
                 "DEFAULT_BUILD_RUN_TIMEOUT", "MAX_CONCURRENT_REBUILDS", "API_TIMEOUT",
                 "NAMESPACE_FILE", "TOKEN_FILE", "CA_FILE"):
        monkeypatch.delenv(name, raising=False)


# ============================================================================
# Resource Factories
# ============================================================================

@pytest.fixture
def build_factory():
    """Create Shipwright Build objects as returned by the API server."""
    def make(name, url="https://example.com/org/app", image="registry/app:latest",
             namespace="apps", timeout=None, source_type="Git"):
        spec = {"output": {"image": image}}
        if source_type is not None:
            spec["source"] = {"type": source_type}
            if url is not None:
                spec["source"]["git"] = {"url": url}
        if timeout:
            spec["timeout"] = timeout
        return {
            "apiVersion": "shipwright.io/v1beta1",
            "kind": "Build",
            "metadata": {"name": name, "namespace": namespace},
            "spec": spec,
        }
    return make


@pytest.fixture
def build_run_factory():
    """Create Shipwright BuildRun objects as returned by the API server."""
    def make(name, url="https://example.com/org/app", image="registry/app:v2",
             namespace="apps", completed=None, build_name=None, embedded=True,
             timeout=None, spec_timeout=None, condition=None):
        build = {}
        if build_name:
            build["name"] = build_name
        if embedded:
            build["spec"] = {
                "source": {"type": "Git", "git": {"url": url}},
                "output": {"image": image},
            }
            if spec_timeout:
                build["spec"]["timeout"] = spec_timeout
        spec = {"build": build}
        if timeout:
            spec["timeout"] = timeout
        status = {}
        if completed:
            status["completionTime"] = completed
        if condition:
            status["conditions"] = [condition]
        return {
            "apiVersion": "shipwright.io/v1beta1",
            "kind": "BuildRun",
            "metadata": {"name": name, "namespace": namespace},
            "spec": spec,
            "status": status,
        }
    return make


@pytest.fixture
def service_factory():
    """Create Knative Service objects as returned by the API server."""
    def make(name, image="registry/app:latest", namespace="apps", template_annotations=None):
        template = {"spec": {"containers": [{"image": image}]}}
        if template_annotations is not None:
            template["metadata"] = {"annotations": dict(template_annotations)}
        return {
            "apiVersion": "serving.knative.dev/v1",
            "kind": "Service",
            "metadata": {
                "name": name,
                "namespace": namespace,
                "resourceVersion": "42",
                "annotations": {"client.knative.dev/user-image": image},
            },
            "spec": {"template": template},
        }
    return make


# ============================================================================
# Client Fixtures
# ============================================================================

@pytest.fixture
def cluster_client():
    """Create a ClusterClient with test config."""
    from rebuilder.services.cluster.client import ClusterClient
    return ClusterClient("https://10.96.0.1:6443", "sa-token", ca_file=False)


@pytest.fixture
def mock_cluster():
    """Create a mock ClusterClient with empty namespaces."""
    client = MagicMock()
    client.list_builds = AsyncMock(return_value=[])
    client.get_build = AsyncMock()
    client.list_build_runs = AsyncMock(return_value=[])
    client.get_build_run = AsyncMock()
    client.create_build_run = AsyncMock()
    client.list_services = AsyncMock(return_value=[])
    client.update_service = AsyncMock()
    return client


@pytest.fixture
def cluster_context(mock_cluster):
    """Cluster context for the 'apps' namespace backed by the mock client."""
    from rebuilder.services.cluster.setup import ClusterContext
    return ClusterContext(namespace="apps", client=mock_cluster)
