"""collaborator interfaces and their http implementations"""

from .base import AccountLedger, BillStore, Catalog, CustomerDirectory

__all__ = ["AccountLedger", "BillStore", "Catalog", "CustomerDirectory"]
