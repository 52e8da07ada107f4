from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
from datetime import date
from typing import AsyncIterator

import asyncpg  # type: ignore[import-untyped]
from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.asyncpg import AsyncPGInstrumentor
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_fastapi_instrumentator import Instrumentator
import strawberry
from strawberry.fastapi import GraphQLRouter

from app.core.config import settings
from app.invoicing.application.routes import INVOICES_ROUTE
from app.invoicing.domain.entities.invoice import Invoice
from app.invoicing.infrastructure.api.auth.credentials_auth_client import CredentialsAuthClient
from app.invoicing.infrastructure.persistence.postgres.invoice_repository_asyncpg import (
    InvoiceRepositoryAsyncpg,
)
from app.invoicing.infrastructure.web.form_actions_router import router as form_actions_router
from app.shared.infrastructure.cache.page_cache import InMemoryPageCache
from app.shared.infrastructure.logging.structured_logger import configure_json_logging
from app.shared.infrastructure.pubsub.broadcaster import InvoiceEventBroadcaster
from app.shared.infrastructure.web.navigation import (
    RedirectRequested,
    redirect_requested_handler,
)


@strawberry.type
class InvoiceType:
    id: str
    customer_id: str
    amount: int
    status: str
    date: date


def _invoice_to_type(invoice: Invoice) -> InvoiceType:
    return InvoiceType(
        id=invoice.id,
        customer_id=invoice.customer_id,
        amount=invoice.amount,
        status=invoice.status.value,
        date=invoice.date,
    )


@strawberry.type
class Query:
    @strawberry.field
    async def invoices(
        self,
        info: strawberry.Info,
        customer_id: str | None = None,
    ) -> list[InvoiceType]:
        state = info.context["request"].app.state
        if customer_id:
            # Filtered lists skip the page cache so its size stays bounded.
            invoices = await state.invoice_repository.fetch_invoices(customer_id=customer_id)
        else:
            invoices = await state.page_cache.get_or_render(
                INVOICES_ROUTE, state.invoice_repository.fetch_invoices
            )
        return [_invoice_to_type(invoice) for invoice in invoices]

    @strawberry.field
    async def invoice(self, info: strawberry.Info, id: str) -> InvoiceType | None:
        repository = info.context["request"].app.state.invoice_repository
        invoice = await repository.fetch_invoice_by_id(id)
        return _invoice_to_type(invoice) if invoice is not None else None


@strawberry.type
class Subscription:
    @strawberry.subscription
    async def invoices_revalidated(
        self,
        info: strawberry.Info,
    ) -> AsyncGenerator[str, None]:
        context_obj = info.context.get("ws") or info.context.get("request")
        broadcaster: InvoiceEventBroadcaster = context_obj.app.state.invoice_broadcaster
        async for route in broadcaster.subscribe():
            yield route


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_json_logging()
    missing_settings = [
        name
        for name, value in (
            ("DATABASE_URL", settings.database_url),
            ("AUTH_BASE_URL", settings.auth_base_url),
        )
        if not value
    ]
    if missing_settings:
        raise RuntimeError(
            "Missing required environment variables: " + ", ".join(missing_settings)
        )

    tracer_provider = TracerProvider(
        resource=Resource.create({SERVICE_NAME: settings.otel_service_name})
    )
    tracer_provider.add_span_processor(
        BatchSpanProcessor(
            OTLPSpanExporter(
                endpoint=settings.otel_exporter_endpoint,
                insecure=True,
            )
        )
    )
    trace.set_tracer_provider(tracer_provider)
    asyncpg_instrumentor = AsyncPGInstrumentor()
    asyncpg_instrumentor.instrument()
    app.state.db_pool = await asyncpg.create_pool(settings.database_url)
    auth_client = CredentialsAuthClient(
        base_url=settings.auth_base_url,
        timeout=settings.auth_timeout_seconds,
    )
    broadcaster = InvoiceEventBroadcaster()
    app.state.invoice_repository = InvoiceRepositoryAsyncpg(db_pool=app.state.db_pool)
    app.state.invoice_broadcaster = broadcaster
    app.state.page_cache = InMemoryPageCache(broadcaster=broadcaster)
    app.state.auth_provider = auth_client

    try:
        yield
    finally:
        await auth_client.close()
        await app.state.db_pool.close()
        asyncpg_instrumentor.uninstrument()
        tracer_provider.shutdown()


app = FastAPI(title="Invoice Dashboard Actions", lifespan=lifespan)
app.add_exception_handler(RedirectRequested, redirect_requested_handler)
FastAPIInstrumentor.instrument_app(app)
Instrumentator().instrument(app).expose(app)
schema = strawberry.Schema(query=Query, subscription=Subscription)
app.include_router(form_actions_router)
app.include_router(GraphQLRouter(schema), prefix="/graphql")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
