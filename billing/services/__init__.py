"""business logic layer"""

from .aggregator import LineItems
from .bill import Bill
from .calculator import compute_totals
from .customers import summarize_pending
from .ledger import PaymentLedger, due_amount_for, payment_status_for
from .payments import PaymentService
from .products import item_from_product, product_ref_from_api, resolve_product, select_batch
from .stats import compute_bill_stats

__all__ = [
    "Bill",
    "LineItems",
    "PaymentLedger",
    "PaymentService",
    "compute_totals",
    "compute_bill_stats",
    "due_amount_for",
    "payment_status_for",
    "summarize_pending",
    "item_from_product",
    "product_ref_from_api",
    "resolve_product",
    "select_batch",
]
