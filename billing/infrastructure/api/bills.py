from typing import Any

from billing.core.exceptions import ExternalCollaboratorError, SessionExpiredError, ValidationError
from billing.core.logging import get_logger
from billing.infrastructure.api.client import ApiClient
from billing.infrastructure.base import AccountLedger, BillStore
from billing.models.domain import BillStats, PaymentRecord, parse_model
from billing.models.requests import PaymentPayload
from billing.models.responses import BillListResponse
from billing.services.bill import Bill
from billing.services.stats import compute_bill_stats

logger = get_logger(__name__)


class HttpBillStore(BillStore):
    """bills behind /bills"""

    def __init__(self, client: ApiClient, account_ledger: AccountLedger | None = None):
        self.client = client
        self.account_ledger = account_ledger

    def save(self, bill: Bill) -> str:
        """
        create or update a bill and remember the server id on it

        returns:
            bill id assigned by the server
        """
        payload = bill.to_payload()
        if bill.bill_id:
            data = self.client.put(f"/bills/{bill.bill_id}", json=payload)
        else:
            data = self.client.post("/bills", json=payload)

        document = _bill_document(data)
        bill_id = document.get("_id") or document.get("id") or bill.bill_id
        if not bill_id:
            raise ExternalCollaboratorError(
                "Billing api did not return a bill id",
                details={"response_keys": sorted(document)},
            )

        bill.bill_id = str(bill_id)
        bill.bill_number = document.get("billNumber") or bill.bill_number
        logger.info("bill saved", bill_id=bill.bill_id, bill_number=bill.bill_number)
        return bill.bill_id

    def load(self, bill_id: str) -> Bill:
        data = self.client.get(f"/bills/{bill_id}")
        return self._to_bill(_bill_document(data), bill_id)

    def list_bills(self, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        data = self.client.get("/bills", params=params)
        if isinstance(data, list):
            return data
        try:
            return parse_model(BillListResponse, data or {}).bills
        except ValidationError as e:
            raise ExternalCollaboratorError("Bill list is malformed", details=e.details) from e

    def stats(self) -> BillStats:
        """server stats, computed from the bill list when the endpoint fails"""
        try:
            data = self.client.get("/bills/stats")
            return parse_model(BillStats, data or {})
        except SessionExpiredError:
            raise
        except (ExternalCollaboratorError, ValidationError) as e:
            logger.warning("bill stats unavailable, computing locally", error=e.message)

        bills = self.list_bills()
        try:
            return compute_bill_stats(bills)
        except ValidationError as e:
            logger.error("bill list cannot be summarized", error=e.message)
            raise ExternalCollaboratorError(
                "Bill list contains malformed amounts",
                details=e.details,
            ) from e

    def post_payment(self, bill_id: str, record: PaymentRecord) -> Bill:
        """
        send a payment to the server, which applies it authoritatively

        returns:
            the bill as stored after the payment
        """
        data = self.client.post(
            f"/bills/{bill_id}/record-payment",
            json=PaymentPayload.from_record(record).to_json(),
        )
        logger.info(
            "payment posted",
            bill_id=bill_id,
            payment_id=record.payment_id,
            amount=str(record.amount),
        )
        return self._to_bill(_bill_document(data), bill_id)

    def _to_bill(self, document: dict[str, Any], bill_id: str) -> Bill:
        try:
            return Bill.from_payload(document, account_ledger=self.account_ledger)
        except ValidationError as e:
            logger.error("invalid bill document", bill_id=bill_id, error=e.message)
            raise ExternalCollaboratorError(
                f"Bill {bill_id} could not be read",
                details={"bill_id": bill_id, **e.details},
            ) from e


def _bill_document(data: Any) -> dict[str, Any]:
    # some endpoints wrap the bill as {"bill": {...}}
    if isinstance(data, dict) and isinstance(data.get("bill"), dict):
        return data["bill"]
    if isinstance(data, dict):
        return data
    raise ExternalCollaboratorError(
        "Billing api returned no bill document",
        details={"type": type(data).__name__},
    )
