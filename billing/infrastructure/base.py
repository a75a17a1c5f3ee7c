"""
Abstract collaborators of the billing core

The core never talks to the network itself. It is handed implementations of
these interfaces and only calls the methods below.
"""
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from billing.models.domain import BillStats, PendingSummary, ProductSummary

if TYPE_CHECKING:
    from billing.services.bill import Bill


class Catalog(ABC):
    """Product lookup"""

    @abstractmethod
    def get_product(self, product_id: str) -> ProductSummary:
        """
        Fetch a product by id

        Raises:
            NotFoundError: Unknown product
            ExternalCollaboratorError: Lookup failed
        """
        pass


class AccountLedger(ABC):
    """Payment accounts that receive payment credits"""

    @abstractmethod
    def credit_account(self, account_id: str, amount: Decimal, idempotency_key: str) -> None:
        """
        Increase an account balance by amount

        Calls repeated with the same idempotency_key must credit once.

        Raises:
            ExternalCollaboratorError: Credit was not applied
        """
        pass


class BillStore(ABC):
    """Durable storage of bills owned by the caller"""

    @abstractmethod
    def save(self, bill: "Bill") -> str:
        """Create or update a bill, returns its id"""
        pass

    @abstractmethod
    def load(self, bill_id: str) -> "Bill":
        """Load a bill by id"""
        pass

    @abstractmethod
    def list_bills(self, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Raw bill documents matching params"""
        pass

    @abstractmethod
    def stats(self) -> BillStats:
        """Bill statistics"""
        pass


class CustomerDirectory(ABC):
    """Customer details, used for the pending-balance warning"""

    @abstractmethod
    def get_customer(self, customer_id: str) -> Dict[str, Any]:
        """Customer document with billing history and pending items"""
        pass

    @abstractmethod
    def pending_summary(self, customer_id: str) -> PendingSummary:
        """Outstanding bills and unreturned items of a customer"""
        pass
