"""Validation rules for the invoice create/edit forms.

Browsers submit every field as a string (or omit it entirely), so the schemas
coerce the raw values before checking them. Two entry points mirror the two
ways the actions consume a form:

* :func:`validate_invoice_form` never raises for bad input and hands back the
  field error map the page renders inline;
* :func:`parse_invoice_form` raises :class:`InvoiceFormError` instead.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from app.invoicing.domain.entities.invoice import InvoiceStatus
from app.invoicing.domain.errors import InvoiceFormError

CUSTOMER_REQUIRED_MESSAGE = "Please select a customer."
AMOUNT_INVALID_MESSAGE = "Please enter a valid amount."
AMOUNT_NOT_POSITIVE_MESSAGE = "Please enter an amount greater than $0."
STATUS_INVALID_MESSAGE = "Please select an invoice status."

INVOICE_FORM_FIELDS = ("customerId", "amount", "status")
_STATUS_VALUES = frozenset(status.value for status in InvoiceStatus)
_CENT = Decimal("0.01")


class InvoiceFields(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    customer_id: str = Field(alias="customerId")
    amount: Decimal
    status: InvoiceStatus

    @field_validator("customer_id", mode="before")
    @classmethod
    def _require_customer(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise PydanticCustomError("customer_required", CUSTOMER_REQUIRED_MESSAGE)
        return value.strip()

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> Decimal:
        # An empty or missing amount counts as zero, so it fails the positivity
        # check rather than the number check.
        if value is None or (isinstance(value, str) and not value.strip()):
            return Decimal(0)
        if isinstance(value, bool):
            raise PydanticCustomError("amount_invalid", AMOUNT_INVALID_MESSAGE)
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise PydanticCustomError("amount_invalid", AMOUNT_INVALID_MESSAGE) from None
        if not amount.is_finite():
            raise PydanticCustomError("amount_invalid", AMOUNT_INVALID_MESSAGE)
        try:
            amount.quantize(_CENT, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            raise PydanticCustomError("amount_invalid", AMOUNT_INVALID_MESSAGE) from None
        return amount

    @field_validator("amount")
    @classmethod
    def _positive_amount(cls, value: Decimal) -> Decimal:
        # Checked at stored precision: 0.004 would otherwise become 0 cents.
        if value.quantize(_CENT, rounding=ROUND_HALF_UP) <= 0:
            raise PydanticCustomError("amount_not_positive", AMOUNT_NOT_POSITIVE_MESSAGE)
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _known_status(cls, value: Any) -> Any:
        if not isinstance(value, str) or value not in _STATUS_VALUES:
            raise PydanticCustomError("status_invalid", STATUS_INVALID_MESSAGE)
        return value


class InvoiceFormSchema(InvoiceFields):
    id: str
    date: str


class CreateInvoiceSchema(InvoiceFields):
    """Create form: the id and issue date are assigned server-side."""


class UpdateInvoiceSchema(InvoiceFields):
    """Edit form: the id comes from the route and the issue date never changes."""


@dataclass(frozen=True, slots=True)
class InvoiceFormValidation:
    data: InvoiceFields | None = None
    errors: dict[str, list[str]] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.data is not None


def amount_in_cents(amount: Decimal) -> int:
    return int((amount.quantize(_CENT, rounding=ROUND_HALF_UP) * 100).to_integral_value())


def field_errors(exc: ValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        loc = error.get("loc") or ("form",)
        errors.setdefault(str(loc[0]), []).append(error["msg"])
    return errors


def _form_fields(form: Mapping[str, Any]) -> dict[str, Any]:
    return {name: form.get(name) for name in INVOICE_FORM_FIELDS}


def validate_invoice_form(
    form: Mapping[str, Any],
    schema: type[InvoiceFields] = CreateInvoiceSchema,
) -> InvoiceFormValidation:
    try:
        return InvoiceFormValidation(data=schema.model_validate(_form_fields(form)))
    except ValidationError as exc:
        return InvoiceFormValidation(errors=field_errors(exc))


def parse_invoice_form(
    form: Mapping[str, Any],
    schema: type[InvoiceFields] = UpdateInvoiceSchema,
) -> InvoiceFields:
    validation = validate_invoice_form(form, schema)
    if validation.data is None:
        raise InvoiceFormError(validation.errors)
    return validation.data
