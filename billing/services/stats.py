"""
Bill statistics

Used when the stats endpoint is unavailable and for the dashboard cards:
counts by payment status, revenue, bills dated today or this month and the
amount still pending.
"""
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Union

from billing.core.enums import PaymentStatus
from billing.models.domain import BillStats
from billing.services.bill import Bill
from billing.utils.money import ZERO, round2, to_money


@dataclass
class _BillFigures:
    total_amount: Decimal
    due_amount: Decimal
    status: Optional[str]
    bill_date: Optional[date]


def compute_bill_stats(bills: Iterable[Union[Bill, Mapping[str, Any]]], today: Optional[date] = None) -> BillStats:
    """
    Compute statistics over bills

    Args:
        bills: Bill objects or raw api documents
        today: Reference date for the today/month counters

    Returns:
        BillStats
    """
    today = today or date.today()
    stats = BillStats()
    total_amount = ZERO
    pending = ZERO

    for bill in bills:
        figures = _figures(bill)
        stats.total += 1
        total_amount += figures.total_amount

        if figures.status == PaymentStatus.PAID.value:
            stats.paid += 1
        elif figures.status == PaymentStatus.PARTIAL.value:
            stats.partial += 1
        else:
            stats.unpaid += 1

        if figures.status != PaymentStatus.PAID.value:
            pending += figures.due_amount

        if figures.bill_date is not None:
            if figures.bill_date == today:
                stats.today_bills += 1
            if (figures.bill_date.year, figures.bill_date.month) == (today.year, today.month):
                stats.monthly_bills += 1

    stats.total_amount = round2(total_amount)
    stats.pending_payments = round2(pending)
    if stats.total:
        stats.average_amount = round2(total_amount / stats.total)
    return stats


def _figures(bill: Union[Bill, Mapping[str, Any]]) -> _BillFigures:
    if isinstance(bill, Bill):
        return _BillFigures(
            total_amount=bill.total_amount,
            due_amount=bill.due_amount,
            status=bill.payment_status.value,
            bill_date=bill.bill_date,
        )
    return _BillFigures(
        total_amount=to_money(bill.get("totalAmount") or 0, "totalAmount"),
        due_amount=to_money(bill.get("dueAmount") or 0, "dueAmount"),
        status=bill.get("paymentStatus"),
        bill_date=_parse_date(bill.get("billDate")),
    )


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None
