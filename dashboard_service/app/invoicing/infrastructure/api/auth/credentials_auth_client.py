import logging
from typing import Any, Mapping

import httpx

from app.invoicing.domain.errors import AuthError, CredentialsSignin

logger = logging.getLogger(__name__)

# Categories the provider may name in a 400 body or an ``error`` redirect param.
KNOWN_ERROR_TYPES = frozenset(
    {
        "AccessDenied",
        "CallbackRouteError",
        "Configuration",
        "CredentialsSignin",
        "InvalidProvider",
        "MissingCSRF",
        "UnknownAction",
    }
)


class CredentialsAuthClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._http_client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"), timeout=timeout, transport=transport
        )

    async def close(self) -> None:
        await self._http_client.aclose()

    async def sign_in(self, provider: str, credentials: Mapping[str, Any]) -> dict[str, Any]:
        form = {
            key: value
            for key, value in credentials.items()
            if isinstance(value, str) and key != "redirectTo"
        }
        response = await self._http_client.post(
            f"/api/auth/callback/{provider}",
            data=form,
            headers={"Accept": "application/json"},
        )

        if response.status_code in (httpx.codes.UNAUTHORIZED, httpx.codes.FORBIDDEN):
            raise CredentialsSignin("Provider rejected the submitted credentials")
        if response.status_code == httpx.codes.BAD_REQUEST:
            raise self._auth_error(
                "Provider refused the sign-in request", self._body_error(response)
            )
        if response.is_error:
            logger.warning(
                "auth_provider_error status=%s provider=%s",
                response.status_code,
                provider,
                extra={"action": "authenticate"},
            )
            raise AuthError(
                f"Provider answered {response.status_code}", type="CallbackRouteError"
            )
        if response.is_redirect:
            # The provider reports failures by redirecting to its sign-in page
            # with ``?error=<category>``; success redirects to the callback URL.
            location = response.headers["Location"]
            error_type = httpx.URL(location).params.get("error")
            if error_type is not None:
                raise self._auth_error("Provider redirected with an error", error_type)
            return {"url": location}
        if not response.is_success:
            raise AuthError(
                f"Provider answered {response.status_code}", type="CallbackRouteError"
            )

        if not response.content:
            return {}
        payload = response.json()
        return payload if isinstance(payload, dict) else {"session": payload}

    @staticmethod
    def _auth_error(message: str, error_type: str | None) -> AuthError:
        if error_type == CredentialsSignin.type:
            return CredentialsSignin(message)
        if error_type in KNOWN_ERROR_TYPES:
            return AuthError(message, type=error_type)
        return AuthError(message, type="CallbackRouteError")

    @staticmethod
    def _body_error(response: httpx.Response) -> str | None:
        try:
            payload = response.json()
        except ValueError:
            return None
        return payload.get("error") if isinstance(payload, dict) else None
