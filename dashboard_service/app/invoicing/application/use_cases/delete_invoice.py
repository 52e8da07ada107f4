import logging

from opentelemetry import trace

from app.invoicing.application.ports.invoice_repository_port import InvoiceRepositoryPort
from app.invoicing.application.ports.page_cache_port import PageCachePort
from app.invoicing.application.routes import INVOICES_ROUTE
from app.invoicing.domain.entities.action_state import ActionResult
from app.invoicing.domain.errors import PersistenceError

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DATABASE_ERROR_MESSAGE = "Database Error: Failed to Delete Invoice."


class DeleteInvoiceUseCase:
    def __init__(
        self,
        invoice_repository: InvoiceRepositoryPort,
        page_cache: PageCachePort,
    ) -> None:
        self._invoice_repository = invoice_repository
        self._page_cache = page_cache

    async def execute(self, invoice_id: str) -> ActionResult:
        try:
            with tracer.start_as_current_span("delete_invoice.delete"):
                invoice = await self._invoice_repository.delete_invoice(invoice_id)
        except PersistenceError:
            logger.exception(
                "invoice_delete_failed invoice_id=%s",
                invoice_id,
                extra={"action": "delete_invoice"},
            )
            return ActionResult.persistence_failed(DATABASE_ERROR_MESSAGE)

        logger.info(
            "invoice_deleted invoice_id=%s found=%s",
            invoice_id,
            invoice is not None,
            extra={"action": "delete_invoice"},
        )
        await self._page_cache.revalidate(INVOICES_ROUTE)
        return ActionResult.success(invoice)
