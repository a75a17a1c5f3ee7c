"""
Pydantic models for payloads sent to the billing API
"""
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from billing.core.enums import PaymentMethod, PaymentStatus
from billing.models.domain import BillItem, CalendarDate, Money, PaymentRecord, Percent


class BillPayload(BaseModel):
    """Body of POST /bills and PUT /bills/{id}"""
    model_config = ConfigDict(populate_by_name=True)

    customer_id: Optional[str] = Field(None, alias="customerId")
    items: List[BillItem] = Field(default_factory=list)
    subtotal: Money
    discount_percent: Percent = Field(..., alias="discountPercent")
    discount_amount: Money = Field(..., alias="discountAmount")
    tax_percent: Percent = Field(..., alias="taxPercent")
    tax_amount: Money = Field(..., alias="taxAmount")
    total_amount: Money = Field(..., alias="totalAmount")
    payment_status: PaymentStatus = Field(..., alias="paymentStatus")
    payment_method: PaymentMethod = Field(..., alias="paymentMethod")
    paid_amount: Money = Field(..., alias="paidAmount")
    due_amount: Money = Field(..., alias="dueAmount")
    bill_date: Optional[CalendarDate] = Field(None, alias="billDate")
    due_date: Optional[CalendarDate] = Field(None, alias="dueDate")
    notes: Optional[str] = None
    payment_history: List[PaymentRecord] = Field(default_factory=list, alias="paymentHistory")

    def to_json(self) -> dict:
        """camelCase dict with plain numbers, ready for requests' json="""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PaymentPayload(BaseModel):
    """Body of POST /bills/{id}/record-payment"""
    model_config = ConfigDict(populate_by_name=True)

    payment_id: str = Field(..., alias="paymentId")
    amount: Money = Field(..., gt=0)
    payment_method: PaymentMethod = Field(..., alias="paymentMethod")
    payment_account_id: Optional[str] = Field(None, alias="paymentAccountId")
    payment_date: date = Field(..., alias="paymentDate")
    notes: Optional[str] = None

    @classmethod
    def from_record(cls, record: PaymentRecord) -> "PaymentPayload":
        return cls(
            payment_id=record.payment_id,
            amount=record.amount,
            payment_method=record.payment_method,
            payment_account_id=record.payment_account_id,
            payment_date=record.payment_date,
            notes=record.notes,
        )

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class AccountCreditPayload(BaseModel):
    """Body of POST /payment-accounts/{id}/credit"""
    amount: Money = Field(..., gt=0)
    reference: str = Field(..., description="Payment id the credit belongs to")
    description: Optional[str] = None

    def to_json(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)

