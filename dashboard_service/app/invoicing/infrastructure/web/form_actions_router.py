from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.invoicing.application.use_cases.authenticate import AuthenticateUseCase
from app.invoicing.application.use_cases.create_invoice import CreateInvoiceUseCase
from app.invoicing.application.use_cases.delete_invoice import DeleteInvoiceUseCase
from app.invoicing.application.use_cases.update_invoice import UpdateInvoiceUseCase
from app.invoicing.domain.entities.action_state import ActionResult, ActionState
from app.shared.infrastructure.web.navigation import HttpNavigator

router = APIRouter(tags=["form-actions"])


def get_create_invoice_use_case(request: Request) -> CreateInvoiceUseCase:
    return CreateInvoiceUseCase(
        invoice_repository=request.app.state.invoice_repository,
        page_cache=request.app.state.page_cache,
        navigator=HttpNavigator(),
    )


def get_update_invoice_use_case(request: Request) -> UpdateInvoiceUseCase:
    return UpdateInvoiceUseCase(
        invoice_repository=request.app.state.invoice_repository,
        page_cache=request.app.state.page_cache,
        navigator=HttpNavigator(),
    )


def get_delete_invoice_use_case(request: Request) -> DeleteInvoiceUseCase:
    return DeleteInvoiceUseCase(
        invoice_repository=request.app.state.invoice_repository,
        page_cache=request.app.state.page_cache,
    )


def get_authenticate_use_case(request: Request) -> AuthenticateUseCase:
    return AuthenticateUseCase(
        auth_provider=request.app.state.auth_provider,
        navigator=HttpNavigator(),
        default_redirect=settings.auth_default_redirect,
    )


def _state_response(result: ActionResult) -> JSONResponse:
    if result.state is None:
        return JSONResponse(ActionState().to_dict())
    status_code = 422 if result.has_field_errors else 503
    return JSONResponse(result.state.to_dict(), status_code=status_code)


@router.post("/dashboard/invoices/create")
async def create_invoice(
    request: Request,
    use_case: CreateInvoiceUseCase = Depends(get_create_invoice_use_case),
) -> JSONResponse:
    form = await request.form()
    return _state_response(await use_case.execute(None, form))


@router.post("/dashboard/invoices/{invoice_id}/edit")
async def update_invoice(
    invoice_id: str,
    request: Request,
    use_case: UpdateInvoiceUseCase = Depends(get_update_invoice_use_case),
) -> JSONResponse:
    form = await request.form()
    return _state_response(await use_case.execute(invoice_id, form))


@router.post("/dashboard/invoices/{invoice_id}/delete")
async def delete_invoice(
    invoice_id: str,
    use_case: DeleteInvoiceUseCase = Depends(get_delete_invoice_use_case),
) -> JSONResponse:
    return _state_response(await use_case.execute(invoice_id))


@router.post("/login")
async def login(
    request: Request,
    use_case: AuthenticateUseCase = Depends(get_authenticate_use_case),
) -> JSONResponse:
    form = await request.form()
    message = await use_case.execute(None, form)
    return JSONResponse({"message": message}, status_code=401 if message else 200)
