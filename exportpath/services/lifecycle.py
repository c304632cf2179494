"""
Lifecycle of the single in-flight route analysis of a session.

Only the most recently started run may change the visible state. Cancelling or
superseding a run never aborts its Gemini calls; their eventual result is
simply dropped when it arrives with a handle that is no longer current.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional

from exportpath.core.errors import (
    ExportPathError,
    QuotaExceededError,
    RemoteServiceError,
)
from exportpath.schemas import AnalysisRequest, DashboardData

from .quota import QuotaGate

logger = logging.getLogger(__name__)

Analyzer = Callable[[AnalysisRequest], Awaitable[DashboardData]]

GENERIC_FAILURE_MESSAGE = "An unexpected error occurred while analyzing routes."


class AnalysisStatus(str, Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


@dataclass(frozen=True, slots=True)
class RunHandle:
    """Identifier minted for each started run; strictly increasing."""

    id: int


@dataclass(frozen=True, slots=True)
class SessionState:
    """What the presentation layer should currently show."""

    status: AnalysisStatus = AnalysisStatus.IDLE
    handle: Optional[RunHandle] = None
    request: Optional[AnalysisRequest] = None
    data: Optional[DashboardData] = None
    error: Optional[str] = None
    rate_limited: bool = False


Listener = Callable[[SessionState], None]


class RequestLifecycleController:
    """Start, supersede and cancel analysis runs while suppressing stale results."""

    def __init__(
        self,
        analyzer: Analyzer,
        *,
        quota_gate: QuotaGate | None = None,
    ) -> None:
        self._analyzer = analyzer
        self._quota_gate = quota_gate
        self._handles = itertools.count(1)
        self._current: Optional[RunHandle] = None
        self._last_request: Optional[AnalysisRequest] = None
        self._state = SessionState()
        self._tasks: Dict[RunHandle, asyncio.Task[None]] = {}
        self._listeners: List[Listener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current_handle(self) -> Optional[RunHandle]:
        return self._current

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a state listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def start(self, request: AnalysisRequest) -> RunHandle:
        """Begin a run, superseding any run still in flight.

        Must be called from within a running event loop. Raises
        ``QuotaExceededError`` before anything else happens when the daily
        quota is spent.
        """
        if self._quota_gate is not None and not self._quota_gate.try_consume():
            raise QuotaExceededError(self._quota_gate.daily_limit)

        if self._state.status is AnalysisStatus.RUNNING and self._current is not None:
            logger.info("Run %d superseded by a new request", self._current.id)

        handle = RunHandle(next(self._handles))
        self._current = handle
        self._last_request = request
        # Prior data is cleared as soon as a new run starts.
        self._set_state(
            SessionState(
                status=AnalysisStatus.RUNNING, handle=handle, request=request
            )
        )

        task = asyncio.create_task(
            self._run(handle, request), name=f"route-analysis-{handle.id}"
        )
        self._tasks[handle] = task
        task.add_done_callback(lambda _task, key=handle: self._tasks.pop(key, None))
        logger.info(
            "Started run %d: %s -> %s (%s)",
            handle.id,
            request.origin_country,
            request.destination_country,
            "grounded" if request.use_search else "internal knowledge",
        )
        return handle

    def retarget(self, destination_country: str) -> RunHandle:
        """Re-run the last request against another destination country."""
        if self._last_request is None:
            raise RuntimeError("No previous request to retarget.")
        return self.start(self._last_request.retarget(destination_country))

    def cancel(self) -> bool:
        """Return to Idle and orphan the running run; False when nothing runs."""
        if self._state.status is not AnalysisStatus.RUNNING:
            return False
        if self._current is not None:
            logger.info("Run %d cancelled", self._current.id)
        self._current = None
        self._set_state(SessionState(request=self._state.request))
        return True

    async def wait(self, handle: RunHandle) -> SessionState:
        """Wait for ``handle``'s run to settle and return the visible state.

        The returned state belongs to whichever run is current at that point,
        which is not ``handle``'s when it was cancelled or superseded.
        """
        task = self._tasks.get(handle)
        if task is not None:
            await task
        return self._state

    async def _run(self, handle: RunHandle, request: AnalysisRequest) -> None:
        try:
            data = await self._analyzer(request)
        except RemoteServiceError as exc:
            self._complete(
                handle, error=exc.user_message, rate_limited=exc.rate_limited
            )
        except ExportPathError as exc:
            self._complete(handle, error=str(exc))
        except Exception as exc:
            if handle == self._current:
                logger.exception("Unexpected failure in run %d", handle.id)
            self._complete(handle, error=str(exc) or GENERIC_FAILURE_MESSAGE)
        else:
            self._complete(handle, data=data)

    def _complete(
        self,
        handle: RunHandle,
        *,
        data: Optional[DashboardData] = None,
        error: Optional[str] = None,
        rate_limited: bool = False,
    ) -> None:
        if handle != self._current:
            logger.debug("Dropping result of run %d; no longer current", handle.id)
            return

        if error is not None:
            logger.warning("Run %d failed: %s", handle.id, error)
            state = SessionState(
                status=AnalysisStatus.ERROR,
                handle=handle,
                request=self._state.request,
                error=error,
                rate_limited=rate_limited,
            )
        else:
            logger.info("Run %d completed", handle.id)
            state = SessionState(
                status=AnalysisStatus.SUCCESS,
                handle=handle,
                request=self._state.request,
                data=data,
            )
        self._set_state(state)

    def _set_state(self, state: SessionState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)


__all__ = [
    "AnalysisStatus",
    "Analyzer",
    "RequestLifecycleController",
    "RunHandle",
    "SessionState",
]
