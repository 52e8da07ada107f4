from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from typing import Any

import asyncpg  # type: ignore[import-untyped]

from app.invoicing.domain.entities.invoice import Invoice, InvoiceStatus
from app.invoicing.domain.errors import PersistenceError

INVOICE_COLUMNS = ["id", "customer_id", "amount", "status", "date"]
_RETURNING = "RETURNING " + ", ".join(INVOICE_COLUMNS)

INSERT_INVOICE_SQL = (
    "INSERT INTO invoices (customer_id, amount, status, date) "
    "VALUES ($1, $2, $3, $4) " + _RETURNING
)
UPDATE_INVOICE_SQL = (
    "UPDATE invoices SET customer_id = $1, amount = $2, status = $3 "
    "WHERE id = $4 " + _RETURNING
)
DELETE_INVOICE_SQL = "DELETE FROM invoices WHERE id = $1 " + _RETURNING
SELECT_INVOICES_SQL = "SELECT " + ", ".join(INVOICE_COLUMNS) + " FROM invoices"


class InvoiceRepositoryAsyncpg:
    def __init__(self, db_pool: asyncpg.Pool) -> None:
        self._db_pool = db_pool

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[Any]:
        try:
            async with self._db_pool.acquire() as connection:
                yield connection
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
            raise PersistenceError(str(exc)) from exc

    async def insert_invoice(
        self, customer_id: str, amount: int, status: InvoiceStatus, issued_on: date
    ) -> Invoice:
        async with self._connection() as connection:
            row = await connection.fetchrow(
                INSERT_INVOICE_SQL, customer_id, amount, status.value, issued_on
            )
        return Invoice.from_record(row)

    async def update_invoice(
        self, invoice_id: str, customer_id: str, amount: int, status: InvoiceStatus
    ) -> Invoice | None:
        async with self._connection() as connection:
            row = await connection.fetchrow(
                UPDATE_INVOICE_SQL, customer_id, amount, status.value, invoice_id
            )
        return Invoice.from_record(row) if row is not None else None

    async def delete_invoice(self, invoice_id: str) -> Invoice | None:
        async with self._connection() as connection:
            row = await connection.fetchrow(DELETE_INVOICE_SQL, invoice_id)
        return Invoice.from_record(row) if row is not None else None

    async def fetch_invoices(self, customer_id: str | None = None) -> list[Invoice]:
        query = SELECT_INVOICES_SQL
        params: tuple[str, ...] = ()
        if customer_id:
            query += " WHERE customer_id = $1"
            params = (customer_id,)
        query += " ORDER BY date DESC"

        async with self._connection() as connection:
            rows = await connection.fetch(query, *params)

        return [Invoice.from_record(row) for row in rows]

    async def fetch_invoice_by_id(self, invoice_id: str) -> Invoice | None:
        async with self._connection() as connection:
            row = await connection.fetchrow(SELECT_INVOICES_SQL + " WHERE id = $1", invoice_id)
        return Invoice.from_record(row) if row is not None else None
