"""
Payment ledger of a single bill
"""
import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, List, Optional, Tuple, Union

from billing.core.enums import PaymentMethod, PaymentStatus
from billing.core.exceptions import (
    BillingError,
    ExternalCollaboratorError,
    InvalidPaymentError,
    OverpaymentError,
    ValidationError,
)
from billing.infrastructure.base import AccountLedger
from billing.models.domain import PaymentRecord, parse_model
from billing.utils.money import ZERO, money_sum, round2, to_exact_money


def payment_status_for(paid_amount: Decimal, total_amount: Decimal) -> PaymentStatus:
    """pending when nothing is paid, paid when nothing is due, partial otherwise"""
    if paid_amount == ZERO:
        return PaymentStatus.PENDING
    if due_amount_for(paid_amount, total_amount) == ZERO:
        return PaymentStatus.PAID
    return PaymentStatus.PARTIAL


def due_amount_for(paid_amount: Decimal, total_amount: Decimal) -> Decimal:
    return max(round2(total_amount - paid_amount), ZERO)


class PaymentLedger:
    """
    Paid amount, due amount and append-only payment history

    The ledger only moves forward: there is no way to remove or edit a
    recorded payment. Refunds need their own signed record elsewhere.
    """

    def __init__(
        self,
        total_amount: Decimal = ZERO,
        history: Iterable[PaymentRecord] = (),
        account_ledger: Optional[AccountLedger] = None
    ):
        self.account_ledger = account_ledger
        self._history: List[PaymentRecord] = list(history)
        self._paid_amount: Decimal = money_sum(record.amount for record in self._history)
        self._total_amount: Decimal = ZERO
        self._due_amount: Decimal = ZERO
        self._status: PaymentStatus = PaymentStatus.PENDING
        self.recompute(total_amount)

    @property
    def paid_amount(self) -> Decimal:
        return self._paid_amount

    @property
    def due_amount(self) -> Decimal:
        return self._due_amount

    @property
    def payment_status(self) -> PaymentStatus:
        return self._status

    @property
    def history(self) -> Tuple[PaymentRecord, ...]:
        return tuple(self._history)

    def recompute(self, total_amount: Decimal) -> None:
        """Refresh due amount and status against a new bill total"""
        self._total_amount = total_amount
        self._due_amount = due_amount_for(self._paid_amount, total_amount)
        self._status = payment_status_for(self._paid_amount, total_amount)

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

        When account_id is given and an account ledger is attached, the
        account is credited before the payment is committed, keyed by the
        payment id. A failed credit leaves the ledger unchanged so the same
        payment_id can be retried.

        Args:
            amount: Amount paid, > 0 and <= due amount
            method: Payment method
            account_id: Ledger account to credit
            payment_date: Defaults to today
            notes: Free text
            payment_id: Caller supplied id for idempotent retries

        Returns:
            The recorded PaymentRecord

        Raises:
            InvalidPaymentError: amount <= 0, not a number or finer than cents
            OverpaymentError: amount > due amount
            ValidationError: Malformed method/date or a reused payment_id
            ExternalCollaboratorError: Account credit failed
        """
        try:
            value = to_exact_money(amount)
        except ValidationError as e:
            raise InvalidPaymentError(e.message, details=e.details)

        if payment_id is not None:
            existing = self._find(payment_id)
            if existing is not None:
                if existing.amount != value:
                    raise ValidationError(
                        f"Payment {payment_id} was already recorded with a different amount",
                        details={"payment_id": payment_id, "recorded": str(existing.amount), "requested": str(value)}
                    )
                return existing

        if value <= ZERO:
            raise InvalidPaymentError(
                "Payment amount must be greater than zero",
                details={"amount": str(value)}
            )
        if value > self._due_amount:
            raise OverpaymentError(
                f"Payment amount {value} exceeds due amount {self._due_amount}",
                details={"amount": str(value), "due_amount": str(self._due_amount)}
            )

        record = parse_model(PaymentRecord, {
            "payment_id": payment_id or uuid.uuid4().hex,
            "amount": value,
            "payment_method": method,
            "payment_account_id": account_id or None,
            "payment_date": payment_date or date.today(),
            "notes": notes,
        })

        if record.payment_account_id and self.account_ledger is not None:
            self._credit(record)

        self._history.append(record)
        self._paid_amount = round2(self._paid_amount + record.amount)
        self.recompute(self._total_amount)
        return record

    def _credit(self, record: PaymentRecord) -> None:
        try:
            self.account_ledger.credit_account(
                record.payment_account_id,
                record.amount,
                idempotency_key=record.payment_id,
            )
        except ExternalCollaboratorError:
            raise
        except Exception as e:
            details = e.details if isinstance(e, BillingError) else {"error": str(e)}
            raise ExternalCollaboratorError(
                f"Crediting account {record.payment_account_id} failed: {e}",
                details={"payment_id": record.payment_id, "account_id": record.payment_account_id, **details}
            ) from e

    def _find(self, payment_id: str) -> Optional[PaymentRecord]:
        for record in self._history:
            if record.payment_id == payment_id:
                return record
        return None
