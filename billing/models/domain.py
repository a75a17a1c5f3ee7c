"""
Domain models - business entities
"""
from datetime import date
from decimal import Decimal
from typing import Annotated, Any, List, Literal, Optional, Type, TypeVar, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    computed_field,
    field_validator,
)
from pydantic import ValidationError as PydanticValidationError

from billing.core.enums import PaymentMethod, PaymentStatus
from billing.core.exceptions import BillingError, ValidationError
from billing.utils.money import round2, to_money, validate_percent

ModelT = TypeVar("ModelT", bound=BaseModel)


def _money_before(value: Any) -> Any:
    try:
        return to_money(value)
    except BillingError as e:
        raise ValueError(e.message)


def _percent_before(value: Any) -> Any:
    try:
        return validate_percent(value)
    except BillingError as e:
        raise ValueError(e.message)


def _date_before(value: Any) -> Any:
    # the api sends full ISO timestamps for calendar dates
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    return value


# Decimal in python, plain number on the wire
Money = Annotated[
    Decimal,
    BeforeValidator(_money_before),
    PlainSerializer(float, return_type=float, when_used="json"),
]
Percent = Annotated[
    Decimal,
    BeforeValidator(_percent_before),
    PlainSerializer(float, return_type=float, when_used="json"),
]
CalendarDate = Annotated[date, BeforeValidator(_date_before)]


def parse_model(model: Type[ModelT], data: Any) -> ModelT:
    """
    Validate data into a model, raising the billing ValidationError

    Args:
        model: Pydantic model class
        data: Mapping or model instance

    Returns:
        Validated model instance

    Raises:
        ValidationError: Data does not fit the model
    """
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        errors = e.errors(include_url=False, include_context=False)
        fields = [".".join(str(part) for part in err["loc"]) for err in errors]
        raise ValidationError(
            f"Invalid {model.__name__}: {', '.join(fields) or 'input'}",
            details={"errors": [{"field": f, "message": err["msg"]} for f, err in zip(fields, errors)]}
        )


def reference_id(value: Any) -> Optional[str]:
    """
    Normalize a populated-or-id reference to its id

    The api sends either the id string or the populated object.
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        ref = value.get("_id") or value.get("id")
        return str(ref) if ref else None
    raise ValueError(f"Unsupported reference: {type(value).__name__}")


class StockBatch(BaseModel):
    """Stock lot of a product with its own unit cost"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    batch_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("_id", "batchId", "batch_id"),
        description="Batch id"
    )
    batch_number: str = Field(
        ...,
        validation_alias=AliasChoices("batchNumber", "batch_number"),
        description="Human readable batch number"
    )
    unit_cost: Money = Field(
        ...,
        ge=0,
        validation_alias=AliasChoices("unitCost", "unit_cost"),
        description="Selling price of one unit from this batch"
    )
    quantity: Optional[int] = Field(None, description="Units left in the batch")


class ProductSummary(BaseModel):
    """Catalog entry as returned by the product lookup"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    product_id: str = Field(
        ...,
        validation_alias=AliasChoices("_id", "productId", "product_id", "id"),
        description="Catalog id"
    )
    name: str = Field(..., description="Product name")
    price: Money = Field(Decimal("0.00"), ge=0, description="List price")
    quantity: Optional[int] = Field(None, description="Stock on hand")
    category_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("category", "categoryId", "category_id"),
        description="Category id"
    )
    available_batches: List[StockBatch] = Field(
        default_factory=list,
        validation_alias=AliasChoices("batches", "availableBatches", "available_batches"),
        description="Batches that can be sold"
    )

    @field_validator("category_id", mode="before")
    @classmethod
    def normalize_category(cls, v: Any) -> Optional[str]:
        """Accept id strings and populated category objects"""
        return reference_id(v)

    @property
    def in_stock(self) -> bool:
        """Unknown stock counts as available"""
        return self.quantity is None or self.quantity > 0


class ProductId(BaseModel):
    """Unresolved product reference"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["id"] = "id"
    product_id: str


class ResolvedProduct(BaseModel):
    """Product reference with the catalog data already attached"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["resolved"] = "resolved"
    product: ProductSummary


ProductRef = Annotated[Union[ProductId, ResolvedProduct], Field(discriminator="kind")]


class BillItem(BaseModel):
    """Line of a bill; total is always quantity x price"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    product_id: str = Field(..., alias="productId", description="Catalog id")
    name: str = Field("", description="Product name at time of sale")
    quantity: int = Field(1, ge=1, description="Units sold")
    price: Money = Field(..., ge=0, description="Unit price")
    batch_number: Optional[str] = Field(None, alias="batchNumber", description="Batch the price came from")
    batch_id: Optional[str] = Field(None, alias="batchId", description="Batch id")

    @field_validator("product_id", mode="before")
    @classmethod
    def normalize_product(cls, v: Any) -> Any:
        """Accept id strings and populated product objects"""
        return reference_id(v)

    @computed_field
    @property
    def total(self) -> Money:
        return round2(self.quantity * self.price)


class PaymentRecord(BaseModel):
    """Single payment against a bill, immutable once recorded"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    payment_id: str = Field(
        ...,
        validation_alias=AliasChoices("paymentId", "_id", "payment_id"),
        serialization_alias="paymentId",
        description="Payment id, also the idempotency key of the account credit"
    )
    amount: Money = Field(..., gt=0, description="Amount paid")
    payment_method: PaymentMethod = Field(
        PaymentMethod.CASH,
        alias="paymentMethod",
        description="How the customer paid"
    )
    payment_account_id: Optional[str] = Field(
        None,
        alias="paymentAccountId",
        description="Ledger account credited with this payment"
    )
    payment_date: CalendarDate = Field(
        default_factory=date.today,
        alias="paymentDate",
        description="Calendar date of the payment"
    )
    notes: Optional[str] = Field(None, description="Free text")

    @field_validator("payment_account_id", mode="before")
    @classmethod
    def normalize_account(cls, v: Any) -> Optional[str]:
        return reference_id(v)


class PaymentAccount(BaseModel):
    """External cash/bank/UPI ledger account"""
    model_config = ConfigDict(populate_by_name=True)

    account_id: str = Field(
        ...,
        validation_alias=AliasChoices("_id", "accountId", "account_id", "id"),
        description="Account id"
    )
    name: str = Field("", description="Display name")
    account_type: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("accountType", "account_type"),
        description="cash, bank, upi, ..."
    )
    current_balance: Money = Field(
        Decimal("0.00"),
        validation_alias=AliasChoices("currentBalance", "current_balance"),
        description="Balance after all credits"
    )
    status: str = Field("active", description="active or inactive")


class Totals(BaseModel):
    """Discount and tax breakdown of a subtotal"""
    model_config = ConfigDict(frozen=True)

    discount_amount: Money
    taxable_amount: Money
    tax_amount: Money
    total_amount: Money


class BillSnapshot(BaseModel):
    """Fully derived read view of a bill"""
    model_config = ConfigDict(frozen=True)

    subtotal: Money = Field(..., description="Sum of item totals")
    discount_amount: Money = Field(..., description="Discount on the subtotal")
    taxable_amount: Money = Field(..., description="Subtotal after discount, never negative")
    tax_amount: Money = Field(..., description="Tax on the taxable amount")
    total_amount: Money = Field(..., description="Amount to pay")
    paid_amount: Money = Field(..., description="Sum of recorded payments")
    due_amount: Money = Field(..., description="Amount still owed")
    payment_status: PaymentStatus = Field(..., description="pending, partial or paid")


class BillStats(BaseModel):
    """Aggregate numbers over a list of bills"""
    total: int = Field(0, validation_alias=AliasChoices("total", "totalBills"))
    total_amount: Money = Field(
        Decimal("0.00"),
        validation_alias=AliasChoices("totalAmount", "totalRevenue", "total_amount")
    )
    paid: int = 0
    partial: int = 0
    unpaid: int = Field(0, validation_alias=AliasChoices("unpaid", "pending"))
    average_amount: Money = Field(
        Decimal("0.00"),
        validation_alias=AliasChoices("averageAmount", "average_amount")
    )
    today_bills: int = Field(0, validation_alias=AliasChoices("todayBills", "today_bills"))
    monthly_bills: int = Field(0, validation_alias=AliasChoices("monthlyBills", "monthly_bills"))
    pending_payments: Money = Field(
        Decimal("0.00"),
        validation_alias=AliasChoices("pendingPayments", "pending_payments")
    )


class PendingBill(BaseModel):
    """Unsettled bill of a customer"""
    bill_id: Optional[str] = None
    bill_number: Optional[str] = None
    payment_status: PaymentStatus
    due_amount: Money = Decimal("0.00")


class PendingSummary(BaseModel):
    """Outstanding bills and unreturned items of a customer"""
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    pending_bills: List[PendingBill] = Field(default_factory=list)
    pending_items: List[dict] = Field(default_factory=list)
    pending_amount: Money = Decimal("0.00")

    @property
    def has_pending(self) -> bool:
        return bool(self.pending_bills or self.pending_items)
