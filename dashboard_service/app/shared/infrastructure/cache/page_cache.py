import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from app.shared.infrastructure.pubsub.broadcaster import InvoiceEventBroadcaster

logger = logging.getLogger(__name__)


class InMemoryPageCache:
    """Rendered views keyed by route, one view per route.

    ``revalidate(route)`` forgets the view rendered for that route and tells
    subscribers the route is stale; the next read renders it again. A render
    that was already running when the route was revalidated is returned to its
    caller but never stored.
    """

    def __init__(self, broadcaster: InvoiceEventBroadcaster | None = None) -> None:
        self._entries: dict[str, Any] = {}
        self._generations: dict[str, int] = {}
        self._lock = asyncio.Lock()
        self._broadcaster = broadcaster

    @staticmethod
    def _path(route: str) -> str:
        return route.rstrip("/") or "/"

    async def get_or_render(self, route: str, render: Callable[[], Awaitable[Any]]) -> Any:
        path = self._path(route)
        async with self._lock:
            if path in self._entries:
                return self._entries[path]
            generation = self._generations.get(path, 0)
        view = await render()
        async with self._lock:
            if self._generations.get(path, 0) == generation:
                self._entries[path] = view
        return view

    async def revalidate(self, route: str) -> None:
        path = self._path(route)
        async with self._lock:
            self._generations[path] = self._generations.get(path, 0) + 1
            dropped = self._entries.pop(path, None) is not None
        subscribers = 0
        if self._broadcaster is not None:
            subscribers = self._broadcaster.subscriber_count
        logger.info(
            "route_revalidated route=%s dropped=%s subscribers=%s",
            path,
            dropped,
            subscribers,
            extra={"action": "revalidate"},
        )
        if self._broadcaster is not None:
            await self._broadcaster.publish(path)

    def __len__(self) -> int:
        return len(self._entries)
