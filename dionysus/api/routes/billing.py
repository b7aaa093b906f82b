"""
Billing Endpoints - Plans, usage, invoices and the simulated checkout.

``project_id`` is optional everywhere: without it billing is workspace-wide,
with it results are filtered to that project (after an access check).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dionysus.core.dependencies import get_billing_service, get_current_user_id
from dionysus.db.database import get_db
from dionysus.models.requests import CheckoutRequest
from dionysus.models.responses import (
    BillingOverviewResponse,
    CheckoutResponse,
    ErrorResponse,
    PlansResponse,
    UsageResponse,
)
from dionysus.models.schemas import Invoice, InvoiceWithPayment, PaymentMethod, Plan, UsageMeter
from dionysus.services import billing_service
from dionysus.services.billing_service import BillingService

router = APIRouter(prefix="/billing", tags=["Billing"])

NOT_FOUND = {404: {"model": ErrorResponse, "description": "Project not found or access denied"}}


@router.get(
    "/plans",
    response_model=PlansResponse,
    summary="Plan Catalog"
)
async def list_plans() -> PlansResponse:
    return PlansResponse(
        currency=billing_service.CURRENCY,
        plans=[Plan.model_validate(p) for p in billing_service.PLAN_CATALOG.values()],
        payment_methods=[PaymentMethod.model_validate(m) for m in billing_service.PAYMENT_METHODS],
    )


@router.get(
    "/overview",
    response_model=BillingOverviewResponse,
    summary="Billing Overview",
    description="Paid invoices, total spend and whether any payment succeeded",
    responses=NOT_FOUND
)
def get_billing_overview(
    project_id: Optional[str] = Query(default=None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
) -> BillingOverviewResponse:
    overview = billing_service.get_billing_overview(db, user_id, project_id)
    return BillingOverviewResponse(
        has_successful_payment=overview["has_successful_payment"],
        total_spend_in_paise=overview["total_spend_in_paise"],
        invoices=[InvoiceWithPayment.model_validate(i) for i in overview["invoices"]],
    )


@router.get(
    "/usage",
    response_model=UsageResponse,
    summary="Usage Meters",
    responses=NOT_FOUND
)
def get_usage(
    project_id: Optional[str] = Query(default=None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
) -> UsageResponse:
    usage = billing_service.get_usage(db, user_id, project_id)
    return UsageResponse(
        project_id=usage["project_id"],
        is_trial=usage["is_trial"],
        meters=[UsageMeter(**m) for m in usage["meters"]],
    )


@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    summary="Checkout",
    description="Simulated payment; a failed payment is a normal 200 response",
    responses=NOT_FOUND
)
async def checkout(
    request: CheckoutRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    service: BillingService = Depends(get_billing_service)
) -> CheckoutResponse:
    result = await service.checkout(
        db,
        user_id=user_id,
        plan_key=request.plan_key,
        payment_method_id=request.payment_method_id,
        project_id=request.project_id,
        simulate_failure=request.simulate_failure,
    )
    invoice = result.get("invoice")
    return CheckoutResponse(
        status=result["status"],
        payment_id=result["payment_id"],
        invoice=Invoice.model_validate(invoice) if invoice is not None else None,
        message=result.get("message"),
    )
