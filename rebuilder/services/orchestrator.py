"""
Rebuild orchestration: from a pushed repository to a redeployed service.
"""

import copy
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from datetime import datetime, timedelta
from http import HTTPStatus
from typing import Any

from rebuilder.core.exceptions import ClusterAPIError, RebuilderError, WaitError
from rebuilder.core.logging import get_logger
from rebuilder.models.resources import Build, BuildRun, Service
from rebuilder.services.cluster import ClusterContext
from rebuilder.services.locator import find_service
from rebuilder.services.matcher import find_build, find_build_run
from rebuilder.services.nudger import nudge_service, utc_now_rfc3339
from rebuilder.services.timeouts import DEFAULT_BUILD_RUN_TIMEOUT, resolve_timeout
from rebuilder.services.waiter import DEFAULT_POLL_INTERVAL, CompletionWaiter

logger = get_logger(__name__)

BUILD_RUN_API_VERSION = "shipwright.io/v1beta1"


@dataclass
class Dispatch:
    """Outcome of the synchronous part of a rebuild request."""

    status: HTTPStatus
    job: Coroutine[Any, Any, None] | None = None


def build_run_for_build(build: Build) -> dict:
    """New build-run object referencing ``build`` by name."""
    return {
        "apiVersion": BUILD_RUN_API_VERSION,
        "kind": "BuildRun",
        "metadata": {
            "generateName": f"rebuild-{build.name}-",
            "namespace": build.namespace,
        },
        "spec": {"build": {"name": build.name}},
    }


def clone_build_run(build_run: BuildRun, now: datetime | None = None) -> dict:
    """New build-run object carrying a full copy of ``build_run``'s spec."""
    now = now or datetime.now()
    return {
        "apiVersion": BUILD_RUN_API_VERSION,
        "kind": "BuildRun",
        "metadata": {
            "name": f"rebuild-build-run-{now.strftime('%Y%m%d%H%M%S')}",
            "namespace": build_run.namespace,
        },
        "spec": copy.deepcopy(build_run.raw.get("spec") or {}),
    }


class RebuildOrchestrator:
    """Matches a repository to a build, triggers it and redeploys the service."""

    def __init__(
        self,
        setup: Callable[[], ClusterContext],
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        default_timeout: timedelta = DEFAULT_BUILD_RUN_TIMEOUT,
        now_fn: Callable[[], str] = utc_now_rfc3339,
        waiter_factory: Callable[..., CompletionWaiter] = CompletionWaiter,
    ):
        self._setup = setup
        self._poll_interval = poll_interval
        self._default_timeout = default_timeout
        self._now_fn = now_fn
        self._waiter_factory = waiter_factory

    async def dispatch(self, repo: str) -> Dispatch:
        """
        Decide how to answer a push for ``repo``.

        Returns a 202 dispatch carrying the background job when a rebuild was
        accepted, 404 when nothing to rebuild or redeploy was found, and 500
        on setup or cluster errors.
        """
        try:
            ctx = self._setup()

            build = await find_build(ctx.client, ctx.namespace, repo)
            if build is not None:
                logger.info(f"Found build {build.name} that references {repo}")
                return await self._handle_build(ctx, build)

            build_run = await find_build_run(ctx.client, ctx.namespace, repo)
            if build_run is not None:
                logger.info(f"Found standalone build-run {build_run.name} that references {repo}")
                return await self._handle_build_run(ctx, build_run)

        except RebuilderError as e:
            logger.error(f"Failed to dispatch rebuild for {repo}: {e}")
            return Dispatch(HTTPStatus.INTERNAL_SERVER_ERROR)

        logger.info(f"Found no suitable build or standalone build-run in namespace {ctx.namespace} for repository {repo}")
        return Dispatch(HTTPStatus.NOT_FOUND)

    async def _handle_build(self, ctx: ClusterContext, build: Build) -> Dispatch:
        image = build.spec.output_image
        service = await find_service(ctx.client, ctx.namespace, image)
        if service is None:
            logger.info(f"Found no service in namespace {ctx.namespace} with image {image}")
            return Dispatch(HTTPStatus.NOT_FOUND)

        body = build_run_for_build(build)
        return Dispatch(HTTPStatus.ACCEPTED, self._rebuild(ctx, body, service, f"build {build.name}"))

    async def _handle_build_run(self, ctx: ClusterContext, build_run: BuildRun) -> Dispatch:
        image = build_run.build_spec.output_image
        service = await find_service(ctx.client, ctx.namespace, image)
        if service is None:
            logger.info(f"Found no service in namespace {ctx.namespace} with image {image}")
            return Dispatch(HTTPStatus.NOT_FOUND)

        body = clone_build_run(build_run)
        return Dispatch(
            HTTPStatus.ACCEPTED,
            self._rebuild(ctx, body, service, f"standalone build-run {build_run.name}"),
        )

    async def _rebuild(self, ctx: ClusterContext, body: dict, service: Service, origin: str) -> None:
        """Background part: create the build-run, wait for it, nudge the service."""
        logger.info(f"Creating build-run for {origin}")
        try:
            build_run = await ctx.client.create_build_run(ctx.namespace, body)
        except ClusterAPIError as e:
            logger.error(f"Failed to create build-run for {origin}: {e}")
            return

        logger.info(f"Created build-run {build_run.name} for {origin}")

        try:
            timeout = await resolve_timeout(ctx.client, build_run, self._default_timeout)
            waiter = self._waiter_factory(ctx.client.get_build_run, interval=self._poll_interval)
            await waiter.wait(build_run, timeout)
        except (WaitError, ClusterAPIError) as e:
            logger.error(f"Failed to wait for build-run {build_run.name} to complete: {e}")
            return

        await nudge_service(ctx.client, service, self._now_fn)
