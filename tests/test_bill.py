import random
from datetime import date
from decimal import Decimal

import pytest

from billing.core.enums import PaymentMethod, PaymentStatus
from billing.core.exceptions import (
    InvalidPaymentError,
    NotFoundError,
    OverpaymentError,
    ValidationError,
)
from billing.services.bill import Bill

D = Decimal


@pytest.fixture
def bill(scenario_items):
    return Bill.create(scenario_items, discount_percent=10, tax_percent=18)


def assert_consistent(bill):
    assert bill.subtotal == sum((item.total for item in bill.items), D("0.00"))
    assert bill.total_amount == bill.taxable_amount + bill.tax_amount
    assert bill.due_amount == max(bill.total_amount - bill.paid_amount, D("0.00"))
    assert bill.paid_amount == sum((p.amount for p in bill.payment_history), D("0.00"))


def test_scenario_a_totals(bill):
    snapshot = bill.snapshot()

    assert snapshot.subtotal == D("200.00")
    assert snapshot.discount_amount == D("20.00")
    assert snapshot.taxable_amount == D("180.00")
    assert snapshot.tax_amount == D("32.40")
    assert snapshot.total_amount == D("212.40")
    assert snapshot.payment_status == PaymentStatus.PENDING


def test_scenario_b_partial_payment(bill):
    bill.record_payment("100.00")

    assert bill.paid_amount == D("100.00")
    assert bill.due_amount == D("112.40")
    assert bill.payment_status == PaymentStatus.PARTIAL


def test_scenario_c_settles_bill(bill):
    bill.record_payment("100.00")
    bill.record_payment("112.40")

    assert bill.due_amount == D("0.00")
    assert bill.payment_status == PaymentStatus.PAID
    assert len(bill.payment_history) == 2


def test_scenario_d_rejected_payments(bill):
    bill.record_payment("100.00")
    before = bill.snapshot()

    with pytest.raises(InvalidPaymentError):
        bill.record_payment(-5)
    with pytest.raises(OverpaymentError):
        bill.record_payment(9999)

    assert bill.snapshot() == before
    assert len(bill.payment_history) == 1


def test_paying_exact_due_and_one_cent_more(bill):
    with pytest.raises(OverpaymentError):
        bill.record_payment(bill.due_amount + D("0.01"))
    assert bill.paid_amount == D("0.00")

    bill.record_payment(bill.due_amount)
    assert bill.payment_status == PaymentStatus.PAID
    assert bill.due_amount == D("0.00")


def test_snapshot_is_stable(bill):
    assert bill.snapshot() == bill.snapshot()


def test_create_with_initial_payment(scenario_items, ledger):
    bill = Bill.create(
        scenario_items,
        discount_percent=10,
        tax_percent=18,
        initial_paid_amount="50",
        payment_method="upi",
        payment_account_id="acc-upi",
        account_ledger=ledger,
        customer_id="c1",
    )

    assert bill.paid_amount == D("50.00")
    assert bill.payment_status == PaymentStatus.PARTIAL
    assert bill.payment_history[0].payment_method == PaymentMethod.UPI
    assert ledger.credits[0][:2] == ("acc-upi", D("50.00"))
    assert bill.customer_id == "c1"


@pytest.mark.parametrize("paid,error", [
    ("-1", InvalidPaymentError),
    ("abc", InvalidPaymentError),
    ("212.41", OverpaymentError),
])
def test_create_rejects_bad_initial_payment(scenario_items, paid, error):
    with pytest.raises(error):
        Bill.create(scenario_items, discount_percent=10, tax_percent=18, initial_paid_amount=paid)


def test_create_rejects_out_of_range_percent(scenario_items):
    with pytest.raises(ValidationError):
        Bill.create(scenario_items, discount_percent=101)
    with pytest.raises(ValidationError):
        Bill.create(scenario_items, tax_percent=-1)


def test_item_edit_after_payment_recomputes_due(bill):
    bill.record_payment("112.40")
    bill.update_item(0, "quantity", 1)

    # 100 - 10% = 90, + 18% = 106.20, already paid 112.40
    assert bill.total_amount == D("106.20")
    assert bill.due_amount == D("0.00")
    assert bill.payment_status == PaymentStatus.PAID

    bill.add_item({"productId": "p2", "name": "Oil", "quantity": 1, "price": "50"})
    assert bill.payment_status == PaymentStatus.PARTIAL
    assert_consistent(bill)


def test_failed_mutations_change_nothing(bill):
    before = bill.snapshot()

    with pytest.raises(ValidationError):
        bill.set_discount_percent(150)
    with pytest.raises(ValidationError):
        bill.add_item({"productId": "p2", "quantity": 0, "price": 1})
    with pytest.raises(NotFoundError):
        bill.remove_item(3)
    with pytest.raises(ValidationError):
        bill.update_item(0, "price", "-1")

    assert bill.snapshot() == before
    assert bill.discount_percent == D("10")


def test_remove_all_items(bill):
    bill.remove_item(0)
    assert bill.items == ()
    assert bill.total_amount == D("0.00")
    assert bill.payment_status == PaymentStatus.PENDING


def test_random_mutations_keep_invariants(scenario_items):
    rng = random.Random(7)
    bill = Bill.create(scenario_items, discount_percent=5, tax_percent=12)
    last_paid = bill.paid_amount

    for _ in range(200):
        action = rng.choice(["add", "remove", "qty", "price", "discount", "tax", "pay"])
        try:
            if action == "add":
                bill.add_item({
                    "productId": f"p{rng.randint(1, 9)}",
                    "quantity": rng.randint(1, 5),
                    "price": str(D(rng.randint(0, 50000)) / 100),
                })
            elif action == "remove":
                bill.remove_item(rng.randint(0, len(bill.items)))
            elif action == "qty":
                bill.update_item(rng.randint(0, len(bill.items)), "quantity", rng.randint(0, 6))
            elif action == "price":
                bill.update_item(rng.randint(0, len(bill.items)), "price", rng.randint(-5, 300))
            elif action == "discount":
                bill.set_discount_percent(rng.randint(-5, 105))
            elif action == "tax":
                bill.set_tax_percent(rng.randint(-5, 105))
            else:
                bill.record_payment(str(D(rng.randint(-100, 20000)) / 100))
        except (ValidationError, NotFoundError, InvalidPaymentError, OverpaymentError):
            pass

        assert bill.paid_amount >= last_paid
        last_paid = bill.paid_amount
        assert bill.total_amount >= 0
        assert_consistent(bill)


def test_payload_uses_api_shape(bill):
    bill.record_payment("100.00", method="card", payment_id="pay-1", payment_date=date(2024, 3, 1))
    payload = bill.to_payload()

    assert payload["subtotal"] == 200.0
    assert payload["discountPercent"] == 10.0
    assert payload["taxAmount"] == 32.4
    assert payload["totalAmount"] == 212.4
    assert payload["paidAmount"] == 100.0
    assert payload["dueAmount"] == 112.4
    assert payload["paymentStatus"] == "partial"
    assert payload["items"][0] == {
        "productId": "p1",
        "name": "Rice 5kg",
        "quantity": 2,
        "price": 100.0,
        "total": 200.0,
    }
    assert payload["paymentHistory"][0]["paymentId"] == "pay-1"
    assert payload["paymentHistory"][0]["paymentDate"] == "2024-03-01"
    assert payload["paymentHistory"][0]["paymentMethod"] == "card"


def test_from_payload_rebuilds_same_bill(bill):
    bill.record_payment("100.00", payment_id="pay-1")
    bill.bill_id = "b1"

    restored = Bill.from_payload({**bill.to_payload(), "_id": "b1"})

    assert restored.snapshot() == bill.snapshot()
    assert restored.payment_history == bill.payment_history
    assert restored.bill_id == "b1"


def test_from_payload_recomputes_and_accepts_loose_shapes():
    document = {
        "_id": "65f0c2",
        "billNumber": "BILL-0042",
        "customerId": {"_id": "c9", "name": "Asha"},
        "items": [
            {"productId": {"_id": "p1", "name": "Sugar"}, "quantity": 3, "price": "40.5", "total": 1},
            {"productId": "p2", "name": "Salt", "quantity": 1, "price": 20},
        ],
        "subtotal": 0,
        "discountPercent": 0,
        "taxPercent": "5",
        "totalAmount": 1,
        "paidAmount": 60,
        "dueAmount": 0,
        "paymentStatus": "paid",
        "paymentMethod": "cash",
        "billDate": "2024-05-02T10:15:00.000Z",
        "paymentHistory": [
            {"_id": "ph1", "amount": 60, "paymentMethod": "cash", "paymentDate": "2024-05-02T10:15:00.000Z"},
        ],
    }

    bill = Bill.from_payload(document)

    assert bill.items[0].name == "Sugar"
    assert bill.items[0].total == D("121.50")
    assert bill.subtotal == D("141.50")
    assert bill.total_amount == D("148.58")
    assert bill.due_amount == D("88.58")
    assert bill.payment_status == PaymentStatus.PARTIAL
    assert bill.customer_id == "c9"
    assert bill.bill_number == "BILL-0042"
    assert bill.bill_date == date(2024, 5, 2)


def test_from_payload_keeps_unrecorded_paid_amount_as_opening_payment():
    bill = Bill.from_payload({
        "_id": "b7",
        "items": [{"productId": "p1", "quantity": 1, "price": 100}],
        "paidAmount": 30,
        "billDate": "2024-01-10",
    })

    assert bill.paid_amount == D("30.00")
    assert bill.payment_history[0].payment_id == "opening-b7"
    assert bill.payment_history[0].payment_date == date(2024, 1, 10)


@pytest.mark.parametrize("document", [
    [],
    {"items": [{"productId": "p1", "quantity": 0, "price": 1}]},
    {"items": ["p1"]},
    {"paymentMethod": "barter"},
    {"billDate": "yesterday"},
])
def test_from_payload_rejects_bad_documents(document):
    with pytest.raises(ValidationError):
        Bill.from_payload(document)


def test_create_rejects_initial_payment_finer_than_cents(scenario_items):
    with pytest.raises(InvalidPaymentError):
        Bill.create(scenario_items, discount_percent=10, tax_percent=18, initial_paid_amount="50.005")


def test_from_payload_accepts_history_without_payment_ids():
    document = {
        "_id": "b5",
        "items": [{"productId": "p1", "quantity": 2, "price": 100}],
        "discountPercent": 10,
        "taxPercent": 18,
        "paidAmount": 150,
        "paymentHistory": [
            {"amount": 100, "paymentMethod": "cash", "paymentDate": "2025-01-02T00:00:00.000Z"},
            {"amount": 50, "paymentMethod": "upi", "paymentDate": "2025-01-03T00:00:00.000Z", "paymentId": ""},
        ],
    }

    bill = Bill.from_payload(document)
    again = Bill.from_payload(document)

    assert [p.payment_id for p in bill.payment_history] == ["b5-0", "b5-1"]
    assert again.payment_history == bill.payment_history
    assert bill.paid_amount == D("150.00")
    assert bill.due_amount == D("62.40")
    assert bill.payment_status == PaymentStatus.PARTIAL


def test_from_payload_keeps_server_payment_ids():
    bill = Bill.from_payload({
        "_id": "b6",
        "items": [{"productId": "p1", "quantity": 1, "price": 100}],
        "paymentHistory": [{"_id": "665a1", "amount": 40, "paymentDate": "2025-01-02"}],
    })
    assert bill.payment_history[0].payment_id == "665a1"
