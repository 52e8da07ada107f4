from dataclasses import dataclass, field
from typing import Any

from app.invoicing.domain.entities.invoice import Invoice


@dataclass(frozen=True, slots=True)
class ActionState:
    """Form state handed back to the page when an action does not redirect."""

    errors: dict[str, list[str]] = field(default_factory=dict)
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"errors": self.errors, "message": self.message}


@dataclass(frozen=True, slots=True)
class ActionResult:
    invoice: Invoice | None = None
    state: ActionState | None = None

    @classmethod
    def success(cls, invoice: Invoice | None) -> "ActionResult":
        return cls(invoice=invoice)

    @classmethod
    def validation_failed(cls, errors: dict[str, list[str]], message: str) -> "ActionResult":
        return cls(state=ActionState(errors=errors, message=message))

    @classmethod
    def persistence_failed(cls, message: str) -> "ActionResult":
        return cls(state=ActionState(message=message))

    @property
    def ok(self) -> bool:
        return self.state is None

    @property
    def has_field_errors(self) -> bool:
        return self.state is not None and bool(self.state.errors)
