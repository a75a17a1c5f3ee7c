"""
Bill aggregate: items, discount/tax totals and payments in one object
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from billing.core.enums import ItemField, PaymentMethod, PaymentStatus
from billing.core.exceptions import InvalidPaymentError, ValidationError
from billing.infrastructure.base import AccountLedger
from billing.models.domain import (
    BillItem,
    BillSnapshot,
    PaymentRecord,
    Totals,
    parse_model,
    reference_id,
)
from billing.models.requests import BillPayload
from billing.services.aggregator import ItemInput, LineItems
from billing.services.calculator import compute_totals
from billing.services.ledger import PaymentLedger
from billing.utils.money import ZERO, money_sum, round2, to_exact_money, to_money, validate_percent


class Bill:
    """
    A bill with its derived totals and payment history

    Every mutating method validates its input, applies the change, then runs
    subtotal -> totals -> ledger in that order. Nothing derived is stored
    independently of that pipeline, and a failed call changes nothing.

    Not safe for concurrent mutation; callers sharing an instance must
    serialize access.
    """

    def __init__(
        self,
        items: Iterable[ItemInput] = (),
        discount_percent: Any = 0,
        tax_percent: Any = 0,
        payment_history: Iterable[PaymentRecord] = (),
        bill_id: Optional[str] = None,
        bill_number: Optional[str] = None,
        customer_id: Optional[str] = None,
        payment_method: Union[PaymentMethod, str] = PaymentMethod.CASH,
        bill_date: Optional[date] = None,
        due_date: Optional[date] = None,
        notes: Optional[str] = None,
        account_ledger: Optional[AccountLedger] = None
    ):
        self._discount_percent = validate_percent(discount_percent, "discount_percent")
        self._tax_percent = validate_percent(tax_percent, "tax_percent")
        self.payment_method = payment_method_from(payment_method)
        self._lines = LineItems(items)
        self._ledger = PaymentLedger(history=payment_history, account_ledger=account_ledger)
        self._totals: Totals = compute_totals(ZERO, ZERO, ZERO)

        self.bill_id = bill_id
        self.bill_number = bill_number
        self.customer_id = customer_id
        self.bill_date = bill_date or date.today()
        self.due_date = due_date
        self.notes = notes

        self._recompute()

    @classmethod
    def create(
        cls,
        initial_items: Iterable[ItemInput] = (),
        discount_percent: Any = 0,
        tax_percent: Any = 0,
        initial_paid_amount: Any = 0,
        payment_method: Union[PaymentMethod, str] = PaymentMethod.CASH,
        payment_account_id: Optional[str] = None,
        account_ledger: Optional[AccountLedger] = None,
        **fields: Any
    ) -> "Bill":
        """
        Create a bill, optionally with an amount paid up front

        A positive initial_paid_amount becomes the first payment record and
        goes through the same checks as record_payment.

        Raises:
            ValidationError: Bad items or percentages
            InvalidPaymentError: Negative, malformed or finer than cents initial paid amount
            OverpaymentError: Initial paid amount above the bill total
        """
        bill = cls(
            items=initial_items,
            discount_percent=discount_percent,
            tax_percent=tax_percent,
            payment_method=payment_method,
            account_ledger=account_ledger,
            **fields
        )

        try:
            paid = to_exact_money(initial_paid_amount or 0, "initial_paid_amount")
        except ValidationError as e:
            raise InvalidPaymentError(e.message, details=e.details)
        if paid < ZERO:
            raise InvalidPaymentError(
                "Initial paid amount cannot be negative",
                details={"initial_paid_amount": str(paid)}
            )
        if paid > ZERO:
            bill.record_payment(paid, method=bill.payment_method, account_id=payment_account_id)

        return bill

    # ---- read side ----

    @property
    def items(self) -> Tuple[BillItem, ...]:
        return self._lines.items

    @property
    def discount_percent(self) -> Decimal:
        return self._discount_percent

    @property
    def tax_percent(self) -> Decimal:
        return self._tax_percent

    @property
    def subtotal(self) -> Decimal:
        return self._lines.subtotal

    @property
    def discount_amount(self) -> Decimal:
        return self._totals.discount_amount

    @property
    def taxable_amount(self) -> Decimal:
        return self._totals.taxable_amount

    @property
    def tax_amount(self) -> Decimal:
        return self._totals.tax_amount

    @property
    def total_amount(self) -> Decimal:
        return self._totals.total_amount

    @property
    def paid_amount(self) -> Decimal:
        return self._ledger.paid_amount

    @property
    def due_amount(self) -> Decimal:
        return self._ledger.due_amount

    @property
    def payment_status(self) -> PaymentStatus:
        return self._ledger.payment_status

    @property
    def payment_history(self) -> Tuple[PaymentRecord, ...]:
        return self._ledger.history

    @property
    def account_ledger(self) -> Optional[AccountLedger]:
        return self._ledger.account_ledger

    @account_ledger.setter
    def account_ledger(self, ledger: Optional[AccountLedger]) -> None:
        self._ledger.account_ledger = ledger

    def snapshot(self) -> BillSnapshot:
        """Fully derived totals and payment state"""
        return BillSnapshot(
            subtotal=self.subtotal,
            discount_amount=self.discount_amount,
            taxable_amount=self.taxable_amount,
            tax_amount=self.tax_amount,
            total_amount=self.total_amount,
            paid_amount=self.paid_amount,
            due_amount=self.due_amount,
            payment_status=self.payment_status,
        )

    # ---- mutations ----

    def add_item(self, item: ItemInput) -> BillItem:
        line = self._lines.add_item(item)
        self._recompute()
        return line

    def remove_item(self, index: int) -> BillItem:
        line = self._lines.remove_item(index)
        self._recompute()
        return line

    def update_item(self, index: int, field: Union[str, ItemField], value: Any) -> BillItem:
        line = self._lines.set_item_field(index, field, value)
        self._recompute()
        return line

    def set_discount_percent(self, value: Any) -> None:
        self._discount_percent = validate_percent(value, "discount_percent")
        self._recompute()

    def set_tax_percent(self, value: Any) -> None:
        self._tax_percent = validate_percent(value, "tax_percent")
        self._recompute()

    def record_payment(
        self,
        amount: Any,
        method: Union[PaymentMethod, str] = PaymentMethod.CASH,
        account_id: Optional[str] = None,
        payment_date: Optional[date] = None,
        notes: Optional[str] = None,
        payment_id: Optional[str] = None
    ) -> PaymentRecord:
        """
        Record a payment against the due amount

        See PaymentLedger.record_payment for the rules.
        """
        self._recompute()
        record = self._ledger.record_payment(
            amount,
            method=method,
            account_id=account_id,
            payment_date=payment_date,
            notes=notes,
            payment_id=payment_id,
        )
        self._recompute()
        return record

    def _recompute(self) -> None:
        subtotal = self._lines.recompute_subtotal()
        self._totals = compute_totals(subtotal, self._discount_percent, self._tax_percent)
        self._ledger.recompute(self._totals.total_amount)

    # ---- wire format ----

    def to_payload(self) -> Dict[str, Any]:
        """Bill document in the api's camelCase shape"""
        payload = BillPayload(
            customer_id=self.customer_id,
            items=list(self.items),
            subtotal=self.subtotal,
            discount_percent=self.discount_percent,
            discount_amount=self.discount_amount,
            tax_percent=self.tax_percent,
            tax_amount=self.tax_amount,
            total_amount=self.total_amount,
            payment_status=self.payment_status,
            payment_method=self.payment_method,
            paid_amount=self.paid_amount,
            due_amount=self.due_amount,
            bill_date=self.bill_date,
            due_date=self.due_date,
            notes=self.notes,
            payment_history=list(self.payment_history),
        )
        return payload.to_json()

    @classmethod
    def from_payload(cls, data: Mapping[str, Any], account_ledger: Optional[AccountLedger] = None) -> "Bill":
        """
        Rebuild a bill from an api document

        Stored totals, due amount and status are ignored and recomputed from
        items, percentages and payments. A stored paidAmount larger than the
        payment history is kept as an opening payment dated on the bill date.

        Raises:
            ValidationError: Document cannot be turned into a bill
        """
        if not isinstance(data, Mapping):
            raise ValidationError("Bill document must be a mapping", details={"type": type(data).__name__})

        bill_id = _optional_str(data.get("_id") or data.get("id") or data.get("billId"))
        payment_method = payment_method_from(data.get("paymentMethod") or PaymentMethod.CASH)
        bill_date = _optional_date(data.get("billDate"), "billDate")

        history = [
            parse_model(PaymentRecord, _history_entry(entry, bill_id, index))
            for index, entry in enumerate(data.get("paymentHistory") or [])
        ]
        recorded = money_sum(record.amount for record in history)
        stored_paid = to_money(data.get("paidAmount") or 0, "paidAmount")
        if stored_paid > recorded:
            history.insert(0, parse_model(PaymentRecord, {
                "payment_id": f"opening-{bill_id or 'bill'}",
                "amount": round2(stored_paid - recorded),
                "payment_method": payment_method,
                "payment_date": bill_date or date.today(),
                "notes": "Paid at bill creation",
            }))

        try:
            customer_id = reference_id(data.get("customerId"))
        except ValueError as e:
            raise ValidationError(str(e), details={"field": "customerId"})

        return cls(
            items=[_item_from_api(item) for item in data.get("items") or []],
            discount_percent=data.get("discountPercent") or 0,
            tax_percent=data.get("taxPercent") or 0,
            payment_history=history,
            bill_id=bill_id,
            bill_number=_optional_str(data.get("billNumber")),
            customer_id=customer_id,
            payment_method=payment_method,
            bill_date=bill_date,
            due_date=_optional_date(data.get("dueDate"), "dueDate"),
            notes=data.get("notes") or None,
            account_ledger=account_ledger,
        )

    def __repr__(self) -> str:
        return (
            f"Bill(id={self.bill_id!r}, items={len(self._lines)}, total={self.total_amount}, "
            f"paid={self.paid_amount}, status={self.payment_status.value})"
        )


def _item_from_api(item: Any) -> Dict[str, Any]:
    if not isinstance(item, Mapping):
        raise ValidationError("Bill item must be a mapping", details={"type": type(item).__name__})
    data = dict(item)
    product = data.get("productId")
    # populated product objects carry the name when the line does not
    if isinstance(product, Mapping) and not data.get("name"):
        data["name"] = product.get("name") or ""
    return data


def _history_entry(entry: Any, bill_id: Optional[str], index: int) -> Any:
    # payments posted without an id are only known by their position
    if isinstance(entry, Mapping) and not any(entry.get(key) for key in ("paymentId", "_id", "payment_id")):
        return {**entry, "paymentId": f"{bill_id or 'bill'}-{index}"}
    return entry


def payment_method_from(value: Union[PaymentMethod, str]) -> PaymentMethod:
    """
    Parse a payment method

    Raises:
        ValidationError: Unknown method
    """
    try:
        return PaymentMethod(value)
    except ValueError:
        raise ValidationError(
            f"Unknown payment method '{value}'",
            details={"allowed": [m.value for m in PaymentMethod]}
        )


def _optional_str(value: Any) -> Optional[str]:
    return str(value) if value else None


def _optional_date(value: Any, field: str) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).split("T", 1)[0])
    except ValueError:
        raise ValidationError(f"{field} is not a date", details={"field": field, "value": str(value)})
