import logging
from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import Any, Mapping

from opentelemetry import trace

from app.invoicing.application.ports.invoice_repository_port import InvoiceRepositoryPort
from app.invoicing.application.ports.navigator_port import NavigatorPort
from app.invoicing.application.ports.page_cache_port import PageCachePort
from app.invoicing.application.routes import INVOICES_ROUTE
from app.invoicing.domain.entities.action_state import ActionResult, ActionState
from app.invoicing.domain.errors import PersistenceError
from app.invoicing.domain.schemas.invoice_form import (
    CreateInvoiceSchema,
    amount_in_cents,
    validate_invoice_form,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

VALIDATION_FAILED_MESSAGE = "Missing Fields. Failed to Create Invoice."
DATABASE_ERROR_MESSAGE = "Database Error: Failed to Create Invoice."


def utc_today() -> date:
    return datetime.now(UTC).date()


class CreateInvoiceUseCase:
    def __init__(
        self,
        invoice_repository: InvoiceRepositoryPort,
        page_cache: PageCachePort,
        navigator: NavigatorPort,
        today: Callable[[], date] = utc_today,
    ) -> None:
        self._invoice_repository = invoice_repository
        self._page_cache = page_cache
        self._navigator = navigator
        self._today = today

    async def execute(
        self, prev_state: ActionState | None, form_data: Mapping[str, Any]
    ) -> ActionResult:
        with tracer.start_as_current_span("create_invoice.validate"):
            validation = validate_invoice_form(form_data, CreateInvoiceSchema)
        if validation.data is None:
            logger.info(
                "invoice_create_rejected fields=%s",
                ",".join(sorted(validation.errors)),
                extra={"action": "create_invoice"},
            )
            return ActionResult.validation_failed(validation.errors, VALIDATION_FAILED_MESSAGE)

        fields = validation.data
        try:
            with tracer.start_as_current_span("create_invoice.insert"):
                invoice = await self._invoice_repository.insert_invoice(
                    customer_id=fields.customer_id,
                    amount=amount_in_cents(fields.amount),
                    status=fields.status,
                    issued_on=self._today(),
                )
        except PersistenceError:
            logger.exception("invoice_create_failed", extra={"action": "create_invoice"})
            return ActionResult.persistence_failed(DATABASE_ERROR_MESSAGE)

        logger.info(
            "invoice_created invoice_id=%s amount=%s status=%s",
            invoice.id,
            invoice.amount,
            invoice.status.value,
            extra={"action": "create_invoice"},
        )
        await self._page_cache.revalidate(INVOICES_ROUTE)
        self._navigator.redirect(INVOICES_ROUTE)
        return ActionResult.success(invoice)
