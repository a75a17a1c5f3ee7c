"""
Customer pending-balance check

Informational only: the result is shown as a warning before a new bill is
created and never blocks creation.
"""
from typing import Any, Mapping

from billing.core.enums import PaymentStatus
from billing.core.exceptions import ValidationError
from billing.models.domain import PendingBill, PendingSummary
from billing.utils.money import ZERO, round2, to_money

UNSETTLED = (PaymentStatus.PENDING.value, PaymentStatus.PARTIAL.value)


def summarize_pending(customer: Mapping[str, Any]) -> PendingSummary:
    """
    Summarize unsettled bills and unreturned items of a customer

    Args:
        customer: Customer document with billingHistory and pendingItems

    Returns:
        PendingSummary

    Raises:
        ValidationError: customer is not a mapping
    """
    if not isinstance(customer, Mapping):
        raise ValidationError(
            "Customer document must be a mapping",
            details={"type": type(customer).__name__}
        )

    pending_bills = []
    pending_amount = ZERO
    for bill in customer.get("billingHistory") or []:
        status = bill.get("paymentStatus")
        if status not in UNSETTLED:
            continue
        due = to_money(bill.get("dueAmount") or 0, "dueAmount")
        pending_bills.append(PendingBill(
            bill_id=_str_or_none(bill.get("_id")),
            bill_number=_str_or_none(bill.get("billNumber")),
            payment_status=PaymentStatus(status),
            due_amount=due,
        ))
        pending_amount += due

    return PendingSummary(
        customer_id=_str_or_none(customer.get("_id")),
        customer_name=customer.get("name"),
        pending_bills=pending_bills,
        pending_items=list(customer.get("pendingItems") or []),
        pending_amount=round2(pending_amount),
    )


def _str_or_none(value: Any):
    return str(value) if value else None
