"""
Single timed request against an (endpoint, query) pair.
"""

import asyncio
import time

import httpx
from loguru import logger

from .types import ProbeOutcome


def build_query_url(endpoint: str, query: str) -> str:
    """Join an endpoint base address and a query path (which may carry a query string)."""
    return f"{endpoint.rstrip('/')}/{query.lstrip('/')}"


async def probe(client: httpx.AsyncClient, url: str, timeout: float) -> ProbeOutcome:
    """
    Issue one GET request and classify the outcome.

    The request is bounded both by httpx's per-phase timeouts and by an
    overall deadline, so the call returns within ``timeout`` plus scheduling
    slack. No retries are attempted.

    Args:
        client: Shared HTTP client for the endpoint
        url: Fully built query URL
        timeout: Request timeout in seconds

    Returns:
        ProbeOutcome with latency on success or the failure kind otherwise
    """
    start = time.perf_counter()

    try:
        response = await asyncio.wait_for(client.get(url, timeout=timeout), timeout=timeout)
    except (asyncio.TimeoutError, httpx.TimeoutException) as e:
        logger.debug(f"⏱️ Timeout after {timeout}s: {url} ({type(e).__name__})")
        return ProbeOutcome.failed("timeout")
    except httpx.ConnectError as e:
        logger.debug(f"🔌 Connection failed: {url} ({e})")
        return ProbeOutcome.failed("connection_error")
    except httpx.RequestError as e:
        # Remaining transport failures plus redirect loops and undecodable bodies
        logger.debug(f"❌ Request failed: {url} ({type(e).__name__}: {e})")
        return ProbeOutcome.failed("transport_error")

    elapsed_ms = (time.perf_counter() - start) * 1000

    if response.is_success:
        return ProbeOutcome.ok(elapsed_ms)

    logger.debug(f"⚠️ HTTP {response.status_code}: {url}")
    return ProbeOutcome.failed("error_status", status_code=response.status_code)
