import logging
from typing import Any, Mapping

from opentelemetry import trace

from app.invoicing.application.ports.invoice_repository_port import InvoiceRepositoryPort
from app.invoicing.application.ports.navigator_port import NavigatorPort
from app.invoicing.application.ports.page_cache_port import PageCachePort
from app.invoicing.application.routes import INVOICES_ROUTE
from app.invoicing.domain.entities.action_state import ActionResult
from app.invoicing.domain.errors import PersistenceError
from app.invoicing.domain.schemas.invoice_form import (
    UpdateInvoiceSchema,
    amount_in_cents,
    validate_invoice_form,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

VALIDATION_FAILED_MESSAGE = "Missing Fields. Failed to Update Invoice."
DATABASE_ERROR_MESSAGE = "Database Error: Failed to Update Invoice."


class UpdateInvoiceUseCase:
    """Replaces customer, amount and status of an existing invoice.

    Failures come back as an :class:`ActionResult` in the same shape the
    create action uses, so the edit page renders them the same way.
    """

    def __init__(
        self,
        invoice_repository: InvoiceRepositoryPort,
        page_cache: PageCachePort,
        navigator: NavigatorPort,
    ) -> None:
        self._invoice_repository = invoice_repository
        self._page_cache = page_cache
        self._navigator = navigator

    async def execute(self, invoice_id: str, form_data: Mapping[str, Any]) -> ActionResult:
        with tracer.start_as_current_span("update_invoice.validate"):
            validation = validate_invoice_form(form_data, UpdateInvoiceSchema)
        if validation.data is None:
            logger.info(
                "invoice_update_rejected invoice_id=%s fields=%s",
                invoice_id,
                ",".join(sorted(validation.errors)),
                extra={"action": "update_invoice"},
            )
            return ActionResult.validation_failed(validation.errors, VALIDATION_FAILED_MESSAGE)

        fields = validation.data
        try:
            with tracer.start_as_current_span("update_invoice.update"):
                invoice = await self._invoice_repository.update_invoice(
                    invoice_id=invoice_id,
                    customer_id=fields.customer_id,
                    amount=amount_in_cents(fields.amount),
                    status=fields.status,
                )
        except PersistenceError:
            logger.exception(
                "invoice_update_failed invoice_id=%s",
                invoice_id,
                extra={"action": "update_invoice"},
            )
            return ActionResult.persistence_failed(DATABASE_ERROR_MESSAGE)

        if invoice is None:
            logger.warning(
                "invoice_update_matched_nothing invoice_id=%s",
                invoice_id,
                extra={"action": "update_invoice"},
            )
        else:
            logger.info(
                "invoice_updated invoice_id=%s amount=%s status=%s",
                invoice.id,
                invoice.amount,
                invoice.status.value,
                extra={"action": "update_invoice"},
            )
        await self._page_cache.revalidate(INVOICES_ROUTE)
        self._navigator.redirect(INVOICES_ROUTE)
        return ActionResult.success(invoice)
