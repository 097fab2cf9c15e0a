"""
Concurrent probing engine.

A QueryRunner drives a pool of workers against one (endpoint, query) pair
for a bounded duration. An EndpointCoordinator runs one QueryRunner per
query and assembles the endpoint report. ``run`` is the synchronous entry
point over all endpoints.
"""

import asyncio
import time
import uuid
from collections.abc import Mapping, Sequence
from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from .errors import ConfigurationError
from .metrics import QueryMetrics
from .probe import build_query_url, probe
from .report import assemble_endpoint_report
from .types import EndpointReport, QueryPlan, QueryResult, RunConfig


class QueryRunner:
    """Runs concurrent workers against a single (endpoint, query) pair."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoint: str,
        query: str,
        plan: QueryPlan,
        cooldown_ms: int = 100,
    ) -> None:
        self.client = client
        self.endpoint = endpoint
        self.query = query
        self.plan = plan
        self.cooldown_ms = cooldown_ms
        self.url = build_query_url(endpoint, query)
        self.metrics = QueryMetrics(query)

    async def run(self) -> QueryResult:
        """
        Probe until the duration elapses and every worker has exited.

        Returns:
            QueryResult snapshot of the frozen metrics
        """
        logger.info(
            f"→ Testing query: {self.query} "
            f"({self.plan.concurrency} workers, {self.plan.duration_secs}s)"
        )
        if self.plan.concurrency == 0:
            logger.warning(f"⚠️ No workers configured for {self.url}, nothing will be probed")

        deadline = time.monotonic() + self.plan.duration_secs
        workers = [
            asyncio.create_task(self._worker(worker_id, deadline))
            for worker_id in range(self.plan.concurrency)
        ]
        try:
            await asyncio.gather(*workers)
        except BaseException:
            # Never leave sibling workers probing after one of them failed
            for task in workers:
                task.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            raise

        result = self.metrics.to_result()
        logger.info(
            f"   ✓ Success: {result.success_count} | ✗ Failure: {result.failure_count} | "
            f"Rate: {result.failure_rate * 100:.1f}%"
        )
        if result.p99_latency_ms is not None:
            logger.info(
                f"   Latency: p50={result.p50_latency_ms:.1f}ms "
                f"p95={result.p95_latency_ms:.1f}ms p99={result.p99_latency_ms:.1f}ms"
            )
        return result

    async def _worker(self, worker_id: int, deadline: float) -> None:
        # An in-flight probe always completes; no cooldown is spent once the deadline has passed
        iterations = 0
        while time.monotonic() < deadline:
            outcome = await probe(self.client, self.url, self.plan.timeout_secs)
            await self.metrics.record(outcome)
            iterations += 1
            if time.monotonic() >= deadline:
                break
            await asyncio.sleep(self.cooldown_ms / 1000)

        logger.debug(f"👋 Worker {worker_id} for {self.query} exited after {iterations} probes")


class EndpointCoordinator:
    """Runs every configured query against one endpoint."""

    def __init__(
        self,
        endpoint: str,
        queries: Sequence[str],
        config: RunConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.queries = list(queries)
        self.config = config
        self.transport = transport
        self.plans = {query: config.plan_for(query) for query in self.queries}

    @property
    def peak_workers(self) -> int:
        """Largest number of workers active at once for this endpoint."""
        counts = [plan.concurrency for plan in self.plans.values()]
        if not counts:
            return 0
        return sum(counts) if self.config.parallel_queries else max(counts)

    def _create_client(self) -> httpx.AsyncClient:
        pool_size = max(self.peak_workers, 1)
        return httpx.AsyncClient(
            transport=self.transport,
            timeout=max(plan.timeout_secs for plan in self.plans.values()),
            limits=httpx.Limits(max_connections=pool_size, max_keepalive_connections=pool_size),
            follow_redirects=True,
        )

    async def run(self, run_id: str) -> EndpointReport:
        """
        Probe every query and assemble the endpoint report.

        Args:
            run_id: Identifier shared by all endpoints of this run

        Returns:
            EndpointReport with one QueryResult per configured query, in order
        """
        logger.info(f"🔍 Testing endpoint: {self.endpoint}")
        start_time = time.time()

        async with self._create_client() as client:
            runners = [
                QueryRunner(client, self.endpoint, query, plan, self.config.cooldown_ms)
                for query, plan in self.plans.items()
            ]
            if self.config.parallel_queries:
                results = list(await asyncio.gather(*(runner.run() for runner in runners)))
            else:
                results = [await runner.run() for runner in runners]

        end_time = time.time()

        report = assemble_endpoint_report(
            endpoint=self.endpoint,
            query_results=results,
            test_duration_secs=max(plan.duration_secs for plan in self.plans.values()),
            start_time=start_time,
            end_time=end_time,
            run_id=run_id,
            location_id=self.config.location_id,
        )
        logger.info(
            f"✅ {self.endpoint}: flakiness score {report.flakiness_score:.1f}/100 "
            f"over {report.total_requests} requests"
        )
        return report


def build_config(config: RunConfig | Mapping[str, Any] | None = None) -> RunConfig:
    """Coerce plain configuration values into a RunConfig."""
    if config is None:
        return RunConfig()
    if isinstance(config, RunConfig):
        return config
    try:
        return RunConfig.model_validate(dict(config))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid run configuration: {e}") from e


def validate_run(endpoints: Sequence[str], queries: Sequence[str], config: RunConfig) -> None:
    """
    Reject configurations that cannot produce a meaningful run.

    Raises:
        ConfigurationError: If endpoints, queries or the worker budget are invalid
    """
    if not endpoints:
        raise ConfigurationError("At least one endpoint is required")
    if not queries:
        raise ConfigurationError("At least one query is required")

    for endpoint in endpoints:
        if not endpoint.startswith(("http://", "https://")):
            raise ConfigurationError(f"Endpoint must be an http(s) URL: {endpoint!r}")
    for query in queries:
        if not query.strip().strip("/"):
            raise ConfigurationError(f"Query must not be blank: {query!r}")
    for endpoint in endpoints:
        for query in queries:
            try:
                httpx.URL(build_query_url(endpoint, query))
            except httpx.InvalidURL as e:
                raise ConfigurationError(f"Invalid URL for {endpoint!r} + {query!r}: {e}") from e

    unknown = set(config.query_overrides) - set(queries)
    if unknown:
        raise ConfigurationError(f"Overrides given for unconfigured queries: {sorted(unknown)}")

    per_endpoint = EndpointCoordinator(endpoints[0], queries, config).peak_workers
    active_workers = per_endpoint * (len(endpoints) if config.parallel_endpoints else 1)
    if active_workers > config.max_workers:
        raise ConfigurationError(
            f"Run would start {active_workers} concurrent workers, "
            f"above the configured cap of {config.max_workers}"
        )


async def run_async(
    endpoints: Sequence[str],
    queries: Sequence[str],
    config: RunConfig | Mapping[str, Any] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[EndpointReport]:
    """Coroutine form of :func:`run`."""
    run_config = build_config(config)
    validate_run(endpoints, queries, run_config)

    run_id = str(uuid.uuid4())
    logger.info(
        f"🏁 Starting run {run_id}: {len(endpoints)} endpoint(s), {len(queries)} query(ies)"
    )

    coordinators = [
        EndpointCoordinator(endpoint, queries, run_config, transport) for endpoint in endpoints
    ]
    if run_config.parallel_endpoints:
        return list(await asyncio.gather(*(c.run(run_id) for c in coordinators)))
    return [await c.run(run_id) for c in coordinators]


def run(
    endpoints: Sequence[str],
    queries: Sequence[str],
    config: RunConfig | Mapping[str, Any] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[EndpointReport]:
    """
    Probe every endpoint with every query and return one report per endpoint.

    Blocks until all probing completes. Probe failures never abort the run;
    only configuration errors do, before any request is sent.

    Args:
        endpoints: Endpoint base addresses
        queries: Query paths to probe on every endpoint
        config: RunConfig or plain mapping of its fields (defaults when None)
        transport: Optional httpx transport, e.g. a MockTransport in tests

    Returns:
        EndpointReports in endpoint order

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    return asyncio.run(run_async(endpoints, queries, config, transport))
