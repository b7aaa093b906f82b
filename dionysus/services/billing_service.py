"""
Billing Service - Plan catalog, usage meters and a simulated checkout.

No payment provider is contacted. Checkout records a PENDING payment, waits
to mimic processing, then marks it SUCCESS (and issues an invoice) or FAILED
depending on the payment method's ``simulate_failure`` flag.

Amounts are integers in paise; the only currency is INR.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from dionysus.db.models import Invoice, InvoiceStatus, Payment, PaymentStatus
from dionysus.services.project_service import count_project, ensure_project_access
from dionysus.services.user_service import upsert_user

logger = logging.getLogger(__name__)

CURRENCY = "INR"
OVERVIEW_INVOICE_LIMIT = 25
CHECKOUT_FAILURE_MESSAGE = "Payment failed. Please try another payment method."


@dataclass(frozen=True)
class Plan:
    key: str
    name: str
    amount_in_paise: Optional[int]
    highlights: List[str] = field(default_factory=list)
    purchasable: bool = True


@dataclass(frozen=True)
class PaymentMethod:
    id: str
    brand: str
    label: str
    meta: str
    simulate_failure: bool = False


PLAN_CATALOG: Dict[str, Plan] = {
    "starter": Plan(
        key="starter",
        name="Starter",
        amount_in_paise=149900,
        highlights=["5 projects", "150 commit summaries", "Basic AI support"],
    ),
    "pro": Plan(
        key="pro",
        name="Pro Workspace",
        amount_in_paise=499900,
        highlights=["Unlimited projects", "1,000 commit summaries", "Priority AI support"],
    ),
    "enterprise": Plan(
        key="enterprise",
        name="Enterprise",
        amount_in_paise=None,
        highlights=["SAML & SOC2 workflows", "Dedicated model tuning", "SLA and support"],
        purchasable=False,
    ),
}

PAYMENT_METHODS: List[PaymentMethod] = [
    PaymentMethod(id="upi_primary", brand="UPI", label="UPI AutoPay", meta="demo-success@upi"),
    PaymentMethod(
        id="card_test_fail",
        brand="Test Card",
        label="Failure simulation",
        meta="xxxx xxxx xxxx 0002",
        simulate_failure=True,
    ),
]
PAYMENT_METHODS_BY_ID: Dict[str, PaymentMethod] = {m.id: m for m in PAYMENT_METHODS}

USAGE_LIMITS = {
    "commit_summaries": ("Commit Summaries", 1000),
    "ai_messages": ("AI Q&A Messages", 500),
    "team_members": ("Team Members", 10),
}


def clamp_percent(value: float) -> int:
    return max(0, min(100, int(value + 0.5)))


def make_invoice_number(payment_id: str, issued_at: Optional[datetime] = None) -> str:
    issued_at = issued_at or datetime.now(timezone.utc)
    return f"INV-{CURRENCY}-{issued_at.year}-{payment_id[-8:].upper()}"


def _scoped(query, model, user_id: str, project_id: Optional[str]):
    query = query.where(model.user_id == user_id)
    if project_id:
        query = query.where(model.project_id == project_id)
    return query


def has_successful_payment(db: Session, user_id: str, project_id: Optional[str] = None) -> bool:
    count = db.scalar(_scoped(
        select(func.count()).select_from(Payment).where(Payment.status == PaymentStatus.SUCCESS.value),
        Payment, user_id, project_id,
    ))
    return bool(count)


def resolve_project_scope(db: Session, project_id: Optional[str], user_id: str) -> Optional[str]:
    """None for workspace-wide billing, else the project id after an access check."""
    if not project_id:
        return None
    ensure_project_access(db, project_id, user_id)
    return project_id


def get_billing_overview(db: Session, user_id: str, project_id: Optional[str] = None) -> Dict[str, Any]:
    """Paid invoices (newest first), total spend and trial status."""
    project_id = resolve_project_scope(db, project_id, user_id)

    invoices = db.scalars(
        _scoped(select(Invoice), Invoice, user_id, project_id)
        .where(Invoice.status == InvoiceStatus.PAID.value)
        .options(selectinload(Invoice.payment))
        .order_by(Invoice.issued_at.desc())
        .limit(OVERVIEW_INVOICE_LIMIT)
    ).all()

    return {
        "has_successful_payment": has_successful_payment(db, user_id, project_id),
        "total_spend_in_paise": sum(invoice.amount_in_paise for invoice in invoices),
        "invoices": list(invoices),
    }


def get_usage(db: Session, user_id: str, project_id: Optional[str] = None) -> Dict[str, Any]:
    """Usage meters for the selected project against plan limits."""
    project_id = resolve_project_scope(db, project_id, user_id)
    counts = count_project(db, project_id) if project_id else None

    used = {
        "commit_summaries": counts.commits if counts else 0,
        "ai_messages": counts.questions if counts else 0,
        "team_members": max(1, counts.users) if counts else 1,
    }
    meters = []
    for key, (label, limit) in USAGE_LIMITS.items():
        meters.append({
            "key": key,
            "label": label,
            "used": used[key],
            "limit": limit,
            "percent": clamp_percent(used[key] / limit * 100),
        })

    return {
        "project_id": project_id,
        "is_trial": not has_successful_payment(db, user_id, project_id),
        "meters": meters,
    }


class BillingService:
    """Runs the simulated checkout."""

    def __init__(self, checkout_delay_seconds: float = 0.9):
        self.checkout_delay_seconds = checkout_delay_seconds

    async def checkout(
        self,
        db: Session,
        user_id: str,
        plan_key: str,
        payment_method_id: str,
        project_id: Optional[str] = None,
        simulate_failure: bool = False,
    ) -> Dict[str, Any]:
        """
        Charge a plan.

        Returns:
            ``{"status": "SUCCESS", "payment_id", "invoice"}`` or
            ``{"status": "FAILED", "payment_id", "message"}``.
        """
        project_id = resolve_project_scope(db, project_id, user_id)
        plan = PLAN_CATALOG.get(plan_key)
        if plan is None or not plan.purchasable:
            raise ValueError(f"Plan is not purchasable: {plan_key}")

        upsert_user(db, user_id)

        payment = Payment(
            user_id=user_id,
            project_id=project_id,
            plan_name=plan.name,
            amount_in_paise=plan.amount_in_paise,
            currency=CURRENCY,
            status=PaymentStatus.PENDING.value,
            provider_ref=f"sim_{payment_method_id}_{int(time.time() * 1000)}",
        )
        db.add(payment)
        db.commit()
        logger.info(f"Payment {payment.id} pending: {plan.name} for user {user_id}")

        if self.checkout_delay_seconds > 0:
            await asyncio.sleep(self.checkout_delay_seconds)

        method = PAYMENT_METHODS_BY_ID.get(payment_method_id)
        if simulate_failure or (method is not None and method.simulate_failure):
            payment.status = PaymentStatus.FAILED.value
            db.commit()
            logger.info(f"Payment {payment.id} failed (simulated)")
            return {
                "status": PaymentStatus.FAILED.value,
                "payment_id": payment.id,
                "message": CHECKOUT_FAILURE_MESSAGE,
            }

        payment.status = PaymentStatus.SUCCESS.value
        invoice = Invoice(
            invoice_number=make_invoice_number(payment.id),
            user_id=user_id,
            project_id=project_id,
            payment_id=payment.id,
            amount_in_paise=plan.amount_in_paise,
            currency=CURRENCY,
            status=InvoiceStatus.PAID.value,
        )
        db.add(invoice)
        db.commit()
        logger.info(f"Payment {payment.id} succeeded, invoice {invoice.invoice_number}")

        return {
            "status": PaymentStatus.SUCCESS.value,
            "payment_id": payment.id,
            "invoice": invoice,
        }
