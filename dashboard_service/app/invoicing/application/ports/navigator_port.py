from typing import Protocol


class NavigatorPort(Protocol):
    def redirect(self, route: str) -> None: ...
