"""
Routing Boundary
================

Bounded Context: Path computation between waypoints (external service).

Design:
- Request/response types, one result per request
- RoutingService protocol: any directions backend plugs in here
- RoutingClient turns the synchronous protocol into futures
- Failures are values (RouteStatus.ERROR), never exceptions to the caller

Usage:
    with RoutingClient(DirectRouter(), max_workers=4) as client:
        future = client.submit(RouteRequest(leg=leg))
        result = future.result()
        if result.ok:
            renderer.draw_path("route", result.path, color)
"""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Protocol, Sequence, Set, Tuple

from freightmap_geometry import Point, RouteLeg

logger = logging.getLogger(__name__)


class RouteStatus(str, Enum):
    """Outcome of a routing request."""
    OK = "OK"
    ZERO_RESULTS = "ZERO_RESULTS"  # Service found no path between the waypoints
    ERROR = "ERROR"                # Service failed or timed out


@dataclass(frozen=True)
class RouteRequest:
    """A single leg to route."""

    leg: RouteLeg
    travel_mode: str = "DRIVING"


@dataclass(frozen=True)
class RouteResult:
    """
    Result of one RouteRequest.

    Attributes:
        request: The request this result answers
        status: Outcome
        path: Routed points, origin first (empty unless status is OK)
        error: Failure description for non-OK results
    """

    request: RouteRequest
    status: RouteStatus
    path: Tuple[Point, ...] = ()
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == RouteStatus.OK


class RoutingService(Protocol):
    """Protocol for directions backends (interface)."""

    def route(self, request: RouteRequest) -> RouteResult:
        """Compute a path for one leg. May block."""
        ...


class DirectRouter:
    """
    Offline router returning the straight leg.

    Stand-in for a directions service when drawing previews without network
    access. Not road routing.
    """

    def route(self, request: RouteRequest) -> RouteResult:
        leg = request.leg
        return RouteResult(
            request=request,
            status=RouteStatus.OK,
            path=(leg.origin, leg.destination),
        )


class RoutingClient:
    """
    Future-based front end for a RoutingService.

    Each submitted request resolves to exactly one RouteResult. Exceptions
    raised by the service are captured as RouteStatus.ERROR results.

    Thread Safety:
        submit() may be called from any thread; the service is called from
        the pool's worker threads.
    """

    def __init__(self, service: RoutingService, max_workers: int = 4, timeout_s: float = 30.0):
        """
        Args:
            service: Backend that computes paths
            max_workers: Concurrent requests in flight
            timeout_s: Shared deadline for each route_all() call
        """
        self.service = service
        self.timeout_s = timeout_s
        self.max_workers = max_workers
        self._executor = self._new_executor()
        # Timed-out requests still running on a retired pool
        self._abandoned: Set[Future] = set()

    def _new_executor(self) -> ThreadPoolExecutor:
        return ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="routing")

    def _resolve(self, request: RouteRequest) -> RouteResult:
        try:
            return self.service.route(request)
        except Exception as e:
            logger.warning(f"Routing leg {request.leg.index} failed: {e}")
            return RouteResult(request=request, status=RouteStatus.ERROR, error=str(e))

    def submit(self, request: RouteRequest) -> "Future[RouteResult]":
        """Issue a request; the future never raises the service's exception."""
        return self._executor.submit(self._resolve, request)

    def route_all(self, requests: Sequence[RouteRequest]) -> List[RouteResult]:
        """
        Route several legs concurrently.

        All requests share one deadline, timeout_s after submission.

        Returns:
            Results in request order. A request that does not resolve before
            the deadline yields an ERROR result and is abandoned.
        """
        deadline = time.monotonic() + self.timeout_s
        futures = [self.submit(request) for request in requests]
        results = []
        timed_out = []
        for request, future in zip(requests, futures):
            try:
                remaining = max(0.0, deadline - time.monotonic())
                results.append(future.result(timeout=remaining))
            except FutureTimeoutError:
                timed_out.append(future)
                results.append(RouteResult(
                    request=request,
                    status=RouteStatus.ERROR,
                    error=f"timed out after {self.timeout_s}s",
                ))

        if timed_out:
            self._abandon(timed_out)
        return results

    def _abandon(self, futures: List[Future]) -> None:
        """
        Give up on timed-out requests.

        Their workers stay busy until the service returns, so the pool is
        retired without waiting and later requests go to a fresh one.
        """
        for future in futures:
            if not future.cancel():
                self._abandoned.add(future)
                future.add_done_callback(self._abandoned.discard)
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._executor = self._new_executor()
        logger.warning(f"Abandoned {len(futures)} timed-out routing requests")

    @property
    def abandoned(self) -> int:
        """Number of timed-out requests still running in the service."""
        return len(self._abandoned)

    def close(self) -> None:
        """
        Release the worker threads.

        Waits for in-flight requests, but never for abandoned ones.
        """
        self._executor.shutdown(wait=True, cancel_futures=True)

    def __enter__(self) -> "RoutingClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
