"""Event dispatch for the offline worker.

The worker receives immutable event objects and returns an awaitable for
each one; the caller awaits it before treating the event as handled:

    InstallEvent   → LifecycleController.install()
    ActivateEvent  → LifecycleController.activate()
    FetchEvent     → FetchPolicy.handle()  (never raises)
    MessageEvent   → {"type": "SKIP_WAITING"} promotes a waiting worker
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Mapping

from foodmap.offline.lifecycle import LifecycleController, LifecycleState
from foodmap.offline.models import Request, Response
from foodmap.offline.network import NetworkError
from foodmap.offline.policy import FetchPolicy

logger = logging.getLogger(__name__)

SKIP_WAITING = "SKIP_WAITING"


@dataclass(frozen=True)
class InstallEvent:
    pass


@dataclass(frozen=True)
class ActivateEvent:
    pass


@dataclass(frozen=True)
class FetchEvent:
    request: Request


@dataclass(frozen=True)
class MessageEvent:
    data: Mapping[str, Any] = field(default_factory=dict, hash=False)


Event = InstallEvent | ActivateEvent | FetchEvent | MessageEvent


class ServiceWorker:
    """Ties the lifecycle controller and fetch policy to incoming events."""

    def __init__(self, lifecycle: LifecycleController, policy: FetchPolicy) -> None:
        self.lifecycle = lifecycle
        self.policy = policy
        self.last_deleted: list[str] = []

    @property
    def state(self) -> LifecycleState:
        return self.lifecycle.state

    def dispatch(self, event: Event) -> Awaitable[Any]:
        """Route *event* to its handler and return the awaitable result."""
        if isinstance(event, FetchEvent):
            return self.on_fetch(event.request)
        if isinstance(event, InstallEvent):
            return self.lifecycle.install()
        if isinstance(event, ActivateEvent):
            return self._activate()
        if isinstance(event, MessageEvent):
            return self.on_message(event.data)
        raise TypeError(f"unsupported event: {type(event).__name__}")

    async def start(self) -> None:
        """Install, then activate straight away if waiting was skipped."""
        await self.dispatch(InstallEvent())
        if not self.lifecycle.waiting:
            await self.dispatch(ActivateEvent())

    async def on_fetch(self, request: Request) -> Response:
        """Answer *request*; a network failure with no fallback becomes an error response."""
        try:
            return await self.policy.handle(request)
        except NetworkError as exc:
            logger.debug("Fetch failed with no fallback: %s", exc)
            return Response.error()

    async def on_message(self, data: Mapping[str, Any]) -> None:
        if not isinstance(data, Mapping) or data.get("type") != SKIP_WAITING:
            logger.debug("Ignoring message: %r", data)
            return
        self.lifecycle.skip_waiting()
        if self.lifecycle.state is LifecycleState.INSTALLED:
            await self._activate()

    async def _activate(self) -> list[str]:
        self.last_deleted = await self.lifecycle.activate()
        return self.last_deleted
