from datetime import date
from decimal import Decimal

from billing.services.bill import Bill
from billing.services.stats import compute_bill_stats

TODAY = date(2024, 6, 15)


def test_stats_over_api_documents():
    bills = [
        {"totalAmount": 100, "dueAmount": 0, "paymentStatus": "paid", "billDate": "2024-06-15T09:00:00Z"},
        {"totalAmount": "250.50", "dueAmount": "50.50", "paymentStatus": "partial", "billDate": "2024-06-01"},
        {"totalAmount": 49.5, "dueAmount": 49.5, "paymentStatus": "pending", "billDate": "2024-05-31"},
        {"totalAmount": 10, "paymentStatus": None},
    ]

    stats = compute_bill_stats(bills, today=TODAY)

    assert stats.total == 4
    assert stats.paid == 1
    assert stats.partial == 1
    assert stats.unpaid == 2
    assert stats.total_amount == Decimal("410.00")
    assert stats.average_amount == Decimal("102.50")
    assert stats.today_bills == 1
    assert stats.monthly_bills == 2
    assert stats.pending_payments == Decimal("100.00")


def test_stats_over_bill_objects():
    paid = Bill.create([{"productId": "p1", "quantity": 1, "price": 10}], initial_paid_amount=10, bill_date=TODAY)
    open_bill = Bill.create([{"productId": "p2", "quantity": 2, "price": 15}], bill_date=TODAY)

    stats = compute_bill_stats([paid, open_bill], today=TODAY)

    assert stats.paid == 1
    assert stats.unpaid == 1
    assert stats.total_amount == Decimal("40.00")
    assert stats.pending_payments == Decimal("30.00")
    assert stats.today_bills == 2


def test_stats_of_no_bills():
    stats = compute_bill_stats([])
    assert stats.total == 0
    assert stats.average_amount == Decimal("0.00")
