import asyncio
import unittest
from datetime import date

import httpx

from app.invoicing.domain.entities.invoice import Invoice, InvoiceStatus
from app.invoicing.domain.errors import CredentialsSignin, PersistenceError
from app.main import app
from app.shared.infrastructure.cache.page_cache import InMemoryPageCache


class _FakeRepository:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.inserted: list[tuple] = []
        self.deleted: list[str] = []
        self.fetch_calls = 0

    async def insert_invoice(self, customer_id, amount, status, issued_on) -> Invoice:
        if self.fail:
            raise PersistenceError("insert failed")
        self.inserted.append((customer_id, amount, status))
        return Invoice(id="inv-1", customer_id=customer_id, amount=amount, status=status, date=issued_on)

    async def update_invoice(self, invoice_id, customer_id, amount, status) -> Invoice | None:
        return Invoice(
            id=invoice_id, customer_id=customer_id, amount=amount, status=status, date=date(2024, 1, 2)
        )

    async def delete_invoice(self, invoice_id) -> Invoice | None:
        if self.fail:
            raise PersistenceError("delete failed")
        self.deleted.append(invoice_id)
        return None

    async def fetch_invoices(self, customer_id=None) -> list[Invoice]:
        self.fetch_calls += 1
        return [
            Invoice(
                id="inv-1",
                customer_id="abc",
                amount=1250,
                status=InvoiceStatus.PAID,
                date=date(2024, 1, 2),
            )
        ]

    async def fetch_invoice_by_id(self, invoice_id) -> Invoice | None:
        return None


class _FakeAuthProvider:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error

    async def sign_in(self, provider, credentials) -> dict:
        if self.error is not None:
            raise self.error
        return {}


def _post(path: str, data: dict | None = None) -> httpx.Response:
    async def _request() -> httpx.Response:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            return await client.post(path, data=data or {})

    return asyncio.run(_request())


class TestFormActionsEndpoints(unittest.TestCase):
    def setUp(self) -> None:
        self.repository = _FakeRepository()
        self.page_cache = InMemoryPageCache()
        app.state.invoice_repository = self.repository
        app.state.page_cache = self.page_cache
        app.state.auth_provider = _FakeAuthProvider()

    def test_create_redirects_to_invoice_list(self) -> None:
        response = _post(
            "/dashboard/invoices/create",
            {"customerId": "abc", "amount": "12.50", "status": "paid"},
        )

        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers["location"], "/dashboard/invoices")
        self.assertEqual(self.repository.inserted, [("abc", 1250, InvoiceStatus.PAID)])

    def test_create_returns_field_errors(self) -> None:
        response = _post("/dashboard/invoices/create", {"customerId": "abc", "amount": "0"})

        self.assertEqual(response.status_code, 422)
        body = response.json()
        self.assertEqual(set(body["errors"]), {"amount", "status"})
        self.assertEqual(body["message"], "Missing Fields. Failed to Create Invoice.")
        self.assertEqual(self.repository.inserted, [])

    def test_create_reports_database_error(self) -> None:
        self.repository.fail = True

        response = _post(
            "/dashboard/invoices/create",
            {"customerId": "abc", "amount": "5", "status": "pending"},
        )

        self.assertEqual(response.status_code, 503)
        self.assertEqual(
            response.json(),
            {"errors": {}, "message": "Database Error: Failed to Create Invoice."},
        )

    def test_edit_redirects_to_invoice_list(self) -> None:
        response = _post(
            "/dashboard/invoices/inv-1/edit",
            {"customerId": "abc", "amount": "3", "status": "pending"},
        )

        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers["location"], "/dashboard/invoices")

    def test_delete_does_not_redirect(self) -> None:
        response = _post("/dashboard/invoices/inv-7/delete")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"errors": {}, "message": None})
        self.assertEqual(self.repository.deleted, ["inv-7"])

    def test_login_reports_invalid_credentials(self) -> None:
        app.state.auth_provider = _FakeAuthProvider(CredentialsSignin())

        response = _post("/login", {"email": "user@nextmail.com", "password": "wrong"})

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"message": "Invalid credentials."})

    def test_login_redirects_on_success(self) -> None:
        response = _post(
            "/login",
            {"email": "user@nextmail.com", "password": "123456", "redirectTo": "/dashboard/invoices"},
        )

        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers["location"], "/dashboard/invoices")

    def test_graphql_invoice_list_is_cached_until_revalidated(self) -> None:
        async def _query() -> httpx.Response:
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
                return await client.post(
                    "/graphql",
                    json={"query": "{ invoices { id customerId amount status date } }"},
                )

        first = asyncio.run(_query())
        asyncio.run(_query())
        _post("/dashboard/invoices/inv-1/delete")
        asyncio.run(_query())

        self.assertEqual(first.status_code, 200)
        self.assertEqual(
            first.json()["data"]["invoices"],
            [
                {
                    "id": "inv-1",
                    "customerId": "abc",
                    "amount": 1250,
                    "status": "paid",
                    "date": "2024-01-02",
                }
            ],
        )
        self.assertEqual(self.repository.fetch_calls, 2)

    def test_graphql_filtered_invoice_list_bypasses_cache(self) -> None:
        async def _query() -> httpx.Response:
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
                return await client.post(
                    "/graphql",
                    json={"query": '{ invoices(customerId: "abc") { id } }'},
                )

        first = asyncio.run(_query())
        asyncio.run(_query())

        self.assertEqual(first.json()["data"]["invoices"], [{"id": "inv-1"}])
        self.assertEqual(self.repository.fetch_calls, 2)
        self.assertEqual(len(self.page_cache), 0)


if __name__ == "__main__":
    unittest.main()
