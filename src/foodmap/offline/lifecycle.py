"""Install/activate lifecycle of the offline worker.

States::

    PARSED → INSTALLING → INSTALLED → ACTIVATING → ACTIVATED
                 │
                 └─(precache failed)→ REDUNDANT

Two cache generations are live at any time: the static one (precached app
shell) and the runtime one (assets cached on first use). Activation deletes
every other cache name; it is the only garbage collection there is.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum

from foodmap.offline.models import Request
from foodmap.offline.storage import CacheAddError, CacheStorage

logger = logging.getLogger(__name__)

DEFAULT_STATIC_CACHE = "foodmap-v1"
DEFAULT_RUNTIME_CACHE = "foodmap-runtime"
DEFAULT_PRECACHE: tuple[str, ...] = ("/", "/manifest.json", "/icon.svg")


class LifecycleState(str, Enum):
    PARSED = "parsed"
    INSTALLING = "installing"
    INSTALLED = "installed"
    ACTIVATING = "activating"
    ACTIVATED = "activated"
    REDUNDANT = "redundant"


class LifecycleError(RuntimeError):
    """Raised on an illegal lifecycle transition."""


class InstallError(RuntimeError):
    """Raised when precaching fails; the worker becomes redundant."""


@dataclass(frozen=True)
class CacheNames:
    """The two live cache generations."""

    static: str = DEFAULT_STATIC_CACHE
    runtime: str = DEFAULT_RUNTIME_CACHE

    def __post_init__(self) -> None:
        if self.static == self.runtime:
            raise ValueError("static and runtime cache names must differ")

    @property
    def current(self) -> frozenset[str]:
        return frozenset({self.static, self.runtime})


@dataclass
class LifecycleController:
    """Drive install and activate against an injected cache storage.

    Attributes:
        storage: Cache storage to precache into and clean up.
        origin: Application origin; precache paths are resolved against it.
        names: Current static/runtime generation names.
        precache: Paths fetched and stored during install.
        state: Current lifecycle state.
        skip_waiting_requested: Set by ``skip_waiting()``; an installed
            controller with this flag does not wait for old clients to close.
        controlling: True once activation has claimed open clients.
    """

    storage: CacheStorage
    origin: str
    names: CacheNames = field(default_factory=CacheNames)
    precache: tuple[str, ...] = DEFAULT_PRECACHE
    state: LifecycleState = LifecycleState.PARSED
    skip_waiting_requested: bool = False
    controlling: bool = False

    async def install(self) -> None:
        """Precache the app shell into the static generation.

        Raises:
            LifecycleError: If install has already run.
            InstallError: If any precache fetch failed. Nothing is installed
                and the controller becomes REDUNDANT (as it does for any
                other error raised while precaching).
        """
        self._require(LifecycleState.PARSED, "install")
        self.state = LifecycleState.INSTALLING
        logger.info("Installing: precaching %d assets into %s", len(self.precache), self.names.static)

        requests = [Request.for_path(self.origin, path) for path in self.precache]
        try:
            cache = await self.storage.open(self.names.static)
            await cache.add_all(requests)
        except CacheAddError as exc:
            self.state = LifecycleState.REDUNDANT
            logger.warning("Install failed: %s", exc)
            raise InstallError(str(exc)) from exc
        except Exception:
            self.state = LifecycleState.REDUNDANT
            logger.exception("Install failed unexpectedly")
            raise

        self.state = LifecycleState.INSTALLED
        logger.info("Installed")
        self.skip_waiting()

    def skip_waiting(self) -> None:
        """Ask to be promoted without waiting for existing clients to close."""
        self.skip_waiting_requested = True

    @property
    def waiting(self) -> bool:
        return self.state is LifecycleState.INSTALLED and not self.skip_waiting_requested

    async def activate(self) -> list[str]:
        """Delete stale cache generations and take control of clients.

        Returns:
            Names of the caches that were deleted.

        Raises:
            LifecycleError: If the controller is not INSTALLED.
        """
        self._require(LifecycleState.INSTALLED, "activate")
        self.state = LifecycleState.ACTIVATING
        logger.info("Activating")

        stale = [n for n in await self.storage.keys() if n not in self.names.current]
        await asyncio.gather(*(self._delete(n) for n in stale))

        self.state = LifecycleState.ACTIVATED
        self.controlling = True
        logger.info("Activated")
        return stale

    async def _delete(self, name: str) -> None:
        logger.info("Deleting old cache: %s", name)
        await self.storage.delete(name)

    def _require(self, expected: LifecycleState, action: str) -> None:
        if self.state is not expected:
            raise LifecycleError(
                f"cannot {action} in state {self.state.value!r} (expected {expected.value!r})"
            )
