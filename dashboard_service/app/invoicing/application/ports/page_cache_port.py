from typing import Protocol


class PageCachePort(Protocol):
    async def revalidate(self, route: str) -> None: ...
