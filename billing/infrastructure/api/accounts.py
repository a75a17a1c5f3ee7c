from decimal import Decimal

from billing.core.exceptions import ExternalCollaboratorError, ValidationError
from billing.core.logging import get_logger
from billing.infrastructure.api.client import ApiClient
from billing.infrastructure.base import AccountLedger
from billing.models.domain import PaymentAccount, parse_model
from billing.models.requests import AccountCreditPayload
from billing.models.responses import PaymentAccountListResponse

logger = get_logger(__name__)


class HttpAccountLedger(AccountLedger):
    """payment accounts behind /payment-accounts"""

    IDEMPOTENCY_HEADER = "Idempotency-Key"

    def __init__(self, client: ApiClient):
        self.client = client

    def credit_account(self, account_id: str, amount: Decimal, idempotency_key: str) -> None:
        """
        increase an account balance, safe to retry with the same key

        raises:
            NotFoundError: unknown account
            ExternalCollaboratorError: credit was not applied
        """
        payload = AccountCreditPayload(
            amount=amount,
            reference=idempotency_key,
            description=f"Bill payment {idempotency_key}",
        )
        self.client.post(
            f"/payment-accounts/{account_id}/credit",
            json=payload.to_json(),
            headers={self.IDEMPOTENCY_HEADER: idempotency_key},
        )
        logger.info(
            "payment account credited",
            account_id=account_id,
            amount=str(amount),
            idempotency_key=idempotency_key,
        )

    def list_accounts(self, status: str | None = "active") -> list[PaymentAccount]:
        """accounts a payment can be credited to"""
        params = {"status": status} if status else None
        data = self.client.get("/payment-accounts", params=params)
        try:
            return parse_model(PaymentAccountListResponse, data or {}).accounts
        except ValidationError as e:
            raise ExternalCollaboratorError(
                "Payment account list is malformed", details=e.details
            ) from e

    def get_account(self, account_id: str) -> PaymentAccount:
        data = self.client.get(f"/payment-accounts/{account_id}")
        if isinstance(data, dict) and isinstance(data.get("account"), dict):
            data = data["account"]
        try:
            return parse_model(PaymentAccount, data)
        except ValidationError as e:
            raise ExternalCollaboratorError(
                f"Payment account {account_id} is malformed", details=e.details
            ) from e
