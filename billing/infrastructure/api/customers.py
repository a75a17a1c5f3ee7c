from typing import Any

from billing.core.exceptions import ExternalCollaboratorError
from billing.core.logging import get_logger
from billing.infrastructure.api.client import ApiClient
from billing.infrastructure.base import CustomerDirectory
from billing.models.domain import PendingSummary
from billing.services.customers import summarize_pending

logger = get_logger(__name__)


class HttpCustomerDirectory(CustomerDirectory):
    """customer details behind /customers"""

    def __init__(self, client: ApiClient):
        self.client = client

    def get_customer(self, customer_id: str) -> dict[str, Any]:
        data = self.client.get(f"/customers/{customer_id}")
        if isinstance(data, dict) and isinstance(data.get("customer"), dict):
            # detail endpoint may wrap the customer next to its history
            customer = dict(data["customer"])
            for key in ("billingHistory", "pendingItems"):
                if key in data and key not in customer:
                    customer[key] = data[key]
            return customer
        if not isinstance(data, dict):
            raise ExternalCollaboratorError(
                f"Customer {customer_id} is malformed",
                details={"type": type(data).__name__},
            )
        return data

    def pending_summary(self, customer_id: str) -> PendingSummary:
        summary = summarize_pending(self.get_customer(customer_id))
        if summary.has_pending:
            logger.info(
                "customer has pending balance",
                customer_id=customer_id,
                pending_bills=len(summary.pending_bills),
                pending_items=len(summary.pending_items),
                pending_amount=str(summary.pending_amount),
            )
        return summary
