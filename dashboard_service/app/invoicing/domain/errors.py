class PersistenceError(Exception):
    """A database statement failed; the cause is chained."""


class InvoiceFormError(ValueError):
    def __init__(self, errors: dict[str, list[str]]) -> None:
        self.errors = errors
        super().__init__(
            "Invalid invoice form: " + ", ".join(sorted(errors)) if errors else "Invalid invoice form"
        )


class AuthError(Exception):
    """Failure reported by the authentication provider.

    ``type`` names the provider's error category, e.g. ``CredentialsSignin``
    for rejected credentials or ``CallbackRouteError`` for a provider-side
    failure while handling the sign-in callback.
    """

    type: str = "AuthError"

    def __init__(self, message: str = "", *, type: str | None = None) -> None:
        if type is not None:
            self.type = type
        super().__init__(message or self.type)


class CredentialsSignin(AuthError):
    type = "CredentialsSignin"
