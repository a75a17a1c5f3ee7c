"""
Payment service - records payments and settles them with the account ledger
"""
import time
from datetime import date
from typing import Any, Optional, Union

from billing.core.enums import PaymentMethod
from billing.core.exceptions import InvalidPaymentError
from billing.core.logging import get_logger
from billing.infrastructure.base import AccountLedger, BillStore
from billing.models.domain import PaymentRecord
from billing.services.bill import Bill, payment_method_from
from billing.utils.money import ZERO

logger = get_logger(__name__)


class PaymentService:
    """
    Records payments on bills
    Orchestrates: validation -> account credit -> commit -> optional save
    """

    def __init__(
        self,
        account_ledger: Optional[AccountLedger] = None,
        bill_store: Optional[BillStore] = None,
        default_method: Union[PaymentMethod, str] = PaymentMethod.CASH
    ):
        """
        Args:
            account_ledger: Ledger credited for payments with an account
            bill_store: Bills are saved after each payment when given
            default_method: Method used when the caller gives none
        """
        self.account_ledger = account_ledger
        self.bill_store = bill_store
        self.default_method = payment_method_from(default_method)

        logger.info(
            "Payment service initialized",
            account_ledger=type(account_ledger).__name__ if account_ledger else None,
            bill_store=type(bill_store).__name__ if bill_store else None,
            default_method=self.default_method.value
        )

    def record_payment(
        self,
        bill: Bill,
        amount: Any,
        method: Union[PaymentMethod, str, None] = None,
        account_id: Optional[str] = None,
        payment_date: Optional[date] = None,
        notes: Optional[str] = None,
        payment_id: Optional[str] = None
    ) -> PaymentRecord:
        """
        Record a payment on a bill

        Pass the same payment_id when retrying after a failure; the account
        is credited at most once per payment_id.

        Returns:
            The recorded PaymentRecord

        Raises:
            InvalidPaymentError: amount <= 0
            OverpaymentError: amount > due amount
            ExternalCollaboratorError: Account credit or save failed
        """
        start_time = time.time()
        if bill.account_ledger is None and self.account_ledger is not None:
            bill.account_ledger = self.account_ledger

        logger.info(
            "Recording payment",
            bill_id=bill.bill_id,
            amount=str(amount),
            due_amount=str(bill.due_amount),
            account_id=account_id,
            payment_id=payment_id
        )

        try:
            record = bill.record_payment(
                amount,
                method=method or self.default_method,
                account_id=account_id,
                payment_date=payment_date,
                notes=notes,
                payment_id=payment_id,
            )

            if self.bill_store is not None:
                self.bill_store.save(bill)

            processing_time_ms = int((time.time() - start_time) * 1000)
            logger.info(
                "Payment recorded",
                bill_id=bill.bill_id,
                payment_id=record.payment_id,
                paid_amount=str(bill.paid_amount),
                due_amount=str(bill.due_amount),
                payment_status=bill.payment_status.value,
                processing_time_ms=processing_time_ms
            )
            return record

        except Exception as e:
            processing_time_ms = int((time.time() - start_time) * 1000)
            logger.error(
                "Payment failed",
                bill_id=bill.bill_id,
                error=str(e),
                error_type=type(e).__name__,
                processing_time_ms=processing_time_ms
            )
            raise

    def pay_full_due(self, bill: Bill, **kwargs: Any) -> PaymentRecord:
        """Settle whatever is still due on the bill"""
        if bill.due_amount == ZERO:
            raise InvalidPaymentError(
                "Bill has nothing due",
                details={"bill_id": bill.bill_id, "payment_status": bill.payment_status.value}
            )
        return self.record_payment(bill, bill.due_amount, **kwargs)
