"""pydantic models for domain entities and api payloads"""

from .domain import (
    BillItem,
    BillSnapshot,
    BillStats,
    PaymentAccount,
    PaymentRecord,
    PendingSummary,
    ProductId,
    ProductRef,
    ProductSummary,
    ResolvedProduct,
    StockBatch,
    Totals,
)

__all__ = [
    "BillItem",
    "BillSnapshot",
    "BillStats",
    "PaymentAccount",
    "PaymentRecord",
    "PendingSummary",
    "ProductId",
    "ProductRef",
    "ProductSummary",
    "ResolvedProduct",
    "StockBatch",
    "Totals",
]
