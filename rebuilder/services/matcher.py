"""
Matching of repository references to builds and standalone build-runs.
"""

from collections.abc import Iterable

from rebuilder.core.logging import get_logger
from rebuilder.models.resources import Build, BuildRun
from rebuilder.services.cluster import ClusterClient

logger = get_logger(__name__)


def select_build(builds: Iterable[Build], repo: str) -> Build | None:
    """Return the first build whose git source contains ``repo``."""
    for build in builds:
        if build.spec.references(repo):
            return build
    return None


def select_build_run(build_runs: Iterable[BuildRun], repo: str) -> BuildRun | None:
    """
    Return the most recently completed standalone build-run for ``repo``.

    Only runs with a completion time and an embedded build spec are
    candidates. On equal completion times the first one seen is kept.
    """
    candidate: BuildRun | None = None

    for build_run in build_runs:
        if build_run.completion_time is None:
            continue
        if build_run.build_spec is None or not build_run.build_spec.references(repo):
            continue
        if candidate is None or build_run.completion_time > candidate.completion_time:
            candidate = build_run

    return candidate


async def find_build(client: ClusterClient, namespace: str, repo: str) -> Build | None:
    """
    Find a build in ``namespace`` that builds ``repo``.

    Raises:
        ListingError: If builds cannot be listed
    """
    builds = await client.list_builds(namespace)
    build = select_build(builds, repo)
    logger.debug(f"Scanned {len(builds)} builds in {namespace} for {repo}")
    return build


async def find_build_run(client: ClusterClient, namespace: str, repo: str) -> BuildRun | None:
    """
    Find the latest completed standalone build-run in ``namespace`` for ``repo``.

    Raises:
        ListingError: If build-runs cannot be listed
    """
    build_runs = await client.list_build_runs(namespace)
    build_run = select_build_run(build_runs, repo)
    logger.debug(f"Scanned {len(build_runs)} build-runs in {namespace} for {repo}")
    return build_run
