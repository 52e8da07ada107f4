from typing import Any, Mapping, Protocol


class AuthProviderPort(Protocol):
    async def sign_in(self, provider: str, credentials: Mapping[str, Any]) -> dict[str, Any]: ...
