"""
Custom exceptions for the billing core
"""


class BillingError(Exception):
    """Base exception for the billing core"""
    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(BillingError):
    """Malformed input to a mutating operation"""
    pass


class NotFoundError(BillingError):
    """Item index, batch, bill or remote resource does not exist"""
    pass


class InvalidPaymentError(BillingError):
    """Payment amount is zero or negative"""
    pass


class OverpaymentError(BillingError):
    """Payment amount exceeds the current due amount"""
    pass


class ExternalCollaboratorError(BillingError):
    """Catalog, ledger, bill store or transport failure"""
    pass


class SessionExpiredError(ExternalCollaboratorError):
    """Auth token could not be refreshed"""
    pass
