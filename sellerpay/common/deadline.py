"""Deadline and disconnect guard for outbound collaborator calls."""

import asyncio
from collections.abc import Awaitable
from time import perf_counter
from typing import TypeVar

from starlette.requests import Request

from sellerpay.common.config import settings
from sellerpay.common.errors import ClientDisconnectedError, CollaboratorTimeout, GatewayTimeoutError
from sellerpay.common.logging import logger
from sellerpay.common.metrics import upstream_latency_seconds, upstream_requests_total

T = TypeVar("T")


async def _wait_for_disconnect(request: Request, poll_interval: float) -> None:
    while not await request.is_disconnected():
        await asyncio.sleep(poll_interval)


async def guard_call(
    call: Awaitable[T],
    *,
    dependency: str,
    timeout: float,
    request: Request | None = None,
    poll_interval: float = 0.25,
) -> T:
    """Await `call` under a deadline, cancelling it if the client goes away.

    Raises `GatewayTimeoutError` when the deadline passes (or the transport
    itself times out) and `ClientDisconnectedError` when the inbound request
    disconnects first. Any other exception from `call` propagates unchanged.
    """

    started = perf_counter()
    task = asyncio.ensure_future(call)
    watcher = None
    waiters = {task}
    if request is not None:
        watcher = asyncio.create_task(_wait_for_disconnect(request, poll_interval))
        waiters.add(watcher)

    outcome = "error"
    try:
        done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        if task in done:
            result = task.result()
            outcome = "success"
            return result
        if watcher is not None and watcher in done:
            outcome = "disconnected"
            logger.warning("client disconnected during %s call, cancelling", dependency)
            raise ClientDisconnectedError()
        outcome = "timeout"
        logger.error("%s call exceeded deadline of %ss", dependency, timeout)
        raise GatewayTimeoutError()
    except CollaboratorTimeout as exc:
        outcome = "timeout"
        logger.error("%s transport timeout: %s", dependency, exc)
        raise GatewayTimeoutError() from exc
    finally:
        for pending in (task, watcher):
            if pending is not None and not pending.done():
                pending.cancel()
        upstream_latency_seconds.labels(service=settings.service_name, dependency=dependency).observe(
            max(0.0, perf_counter() - started)
        )
        upstream_requests_total.labels(
            service=settings.service_name,
            dependency=dependency,
            outcome=outcome,
        ).inc()
