from datetime import date
from typing import Protocol

from app.invoicing.domain.entities.invoice import Invoice, InvoiceStatus


class InvoiceRepositoryPort(Protocol):
    async def insert_invoice(
        self, customer_id: str, amount: int, status: InvoiceStatus, issued_on: date
    ) -> Invoice: ...

    async def update_invoice(
        self, invoice_id: str, customer_id: str, amount: int, status: InvoiceStatus
    ) -> Invoice | None: ...

    async def delete_invoice(self, invoice_id: str) -> Invoice | None: ...

    async def fetch_invoices(self, customer_id: str | None = None) -> list[Invoice]: ...

    async def fetch_invoice_by_id(self, invoice_id: str) -> Invoice | None: ...
