import logging
from typing import Any, Mapping

from opentelemetry import trace

from app.invoicing.application.ports.auth_provider_port import AuthProviderPort
from app.invoicing.application.ports.navigator_port import NavigatorPort
from app.invoicing.domain.errors import AuthError

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

CREDENTIALS_PROVIDER = "credentials"
INVALID_CREDENTIALS_MESSAGE = "Invalid credentials."
GENERIC_FAILURE_MESSAGE = "Something went wrong."


class AuthenticateUseCase:
    def __init__(
        self,
        auth_provider: AuthProviderPort,
        navigator: NavigatorPort,
        default_redirect: str = "/dashboard",
    ) -> None:
        self._auth_provider = auth_provider
        self._navigator = navigator
        self._default_redirect = default_redirect

    async def execute(
        self, prev_state: str | None, form_data: Mapping[str, Any]
    ) -> str | None:
        try:
            with tracer.start_as_current_span("authenticate.sign_in"):
                await self._auth_provider.sign_in(CREDENTIALS_PROVIDER, form_data)
        except AuthError as exc:
            logger.info("sign_in_rejected type=%s", exc.type, extra={"action": "authenticate"})
            if exc.type == "CredentialsSignin":
                return INVALID_CREDENTIALS_MESSAGE
            return GENERIC_FAILURE_MESSAGE

        self._navigator.redirect(self._redirect_target(form_data))
        return None

    def _redirect_target(self, form_data: Mapping[str, Any]) -> str:
        redirect_to = form_data.get("redirectTo")
        # Only same-site paths; anything else falls back to the dashboard.
        if isinstance(redirect_to, str) and redirect_to.startswith("/") and not redirect_to.startswith("//"):
            return redirect_to
        return self._default_redirect
