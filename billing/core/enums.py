"""
Enums for type safety
"""
from enum import Enum


class PaymentStatus(str, Enum):
    """Bill payment status"""
    PENDING = "pending"  # nothing paid yet
    PARTIAL = "partial"
    PAID = "paid"


class PaymentMethod(str, Enum):
    """Payment methods"""
    CASH = "cash"
    CARD = "card"
    UPI = "upi"
    BANK_TRANSFER = "bank_transfer"
    CREDIT = "credit"  # store credit


class ItemField(str, Enum):
    """Bill item fields that can be edited in place"""
    QUANTITY = "quantity"
    PRICE = "price"


class LogFormat(str, Enum):
    """Log output formats"""
    JSON = "json"
    CONSOLE = "console"
