"""
Resolution of how long to wait for a build-run.
"""

from datetime import timedelta

from rebuilder.core.exceptions import ClusterAPIError
from rebuilder.core.logging import get_logger
from rebuilder.models.resources import BuildRun
from rebuilder.services.cluster import ClusterClient

logger = get_logger(__name__)

DEFAULT_BUILD_RUN_TIMEOUT = timedelta(minutes=10)


async def resolve_timeout(
    client: ClusterClient,
    build_run: BuildRun,
    default: timedelta = DEFAULT_BUILD_RUN_TIMEOUT,
) -> timedelta:
    """
    Determine the wait timeout for a build-run.

    First one set wins: the build-run's own timeout, the timeout of the
    build it references by name, the timeout of its embedded build spec,
    and finally ``default``.
    """
    if build_run.timeout is not None:
        return build_run.timeout

    if build_run.build_name:
        try:
            build = await client.get_build(build_run.namespace, build_run.build_name)
        except ClusterAPIError as e:
            logger.warning(f"Could not fetch build {build_run.build_name} for timeout lookup: {e}")
        else:
            if build.spec.timeout is not None:
                return build.spec.timeout

    if build_run.build_spec is not None and build_run.build_spec.timeout is not None:
        return build_run.build_spec.timeout

    return default
