from fastapi import Request
from fastapi.responses import RedirectResponse


class RedirectRequested(Exception):
    def __init__(self, route: str) -> None:
        self.route = route
        super().__init__(route)


class HttpNavigator:
    """Ends the current request with a redirect to ``route``."""

    def redirect(self, route: str) -> None:
        raise RedirectRequested(route)


async def redirect_requested_handler(request: Request, exc: RedirectRequested) -> RedirectResponse:
    return RedirectResponse(exc.route, status_code=303)
