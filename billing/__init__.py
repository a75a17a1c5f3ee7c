"""billing computation and payment reconciliation core"""

from .core.exceptions import (
    BillingError,
    ExternalCollaboratorError,
    InvalidPaymentError,
    NotFoundError,
    OverpaymentError,
    SessionExpiredError,
    ValidationError,
)
from .services.bill import Bill
from .services.payments import PaymentService

__version__ = "1.0.0"

__all__ = [
    "Bill",
    "PaymentService",
    "BillingError",
    "ValidationError",
    "NotFoundError",
    "InvalidPaymentError",
    "OverpaymentError",
    "ExternalCollaboratorError",
    "SessionExpiredError",
]
