"""
Wiring of the HTTP collaborators and services
"""
from functools import lru_cache

from billing.config import get_settings
from billing.core.logging import get_logger
from billing.infrastructure.api.accounts import HttpAccountLedger
from billing.infrastructure.api.bills import HttpBillStore
from billing.infrastructure.api.catalog import HttpCatalog
from billing.infrastructure.api.client import ApiClient
from billing.infrastructure.api.customers import HttpCustomerDirectory
from billing.infrastructure.base import AccountLedger, BillStore
from billing.services.payments import PaymentService

logger = get_logger(__name__)


@lru_cache()
def get_api_client() -> ApiClient:
    """
    Shared ApiClient (singleton)
    One requests session and one token store for the whole process
    """
    settings = get_settings()
    client = ApiClient(settings=settings)
    logger.info("Billing api client created", base_url=client.base_url, timeout=client.timeout)
    return client


@lru_cache()
def get_catalog() -> HttpCatalog:
    return HttpCatalog(get_api_client())


@lru_cache()
def get_account_ledger() -> HttpAccountLedger:
    return HttpAccountLedger(get_api_client())


@lru_cache()
def get_bill_store() -> HttpBillStore:
    return HttpBillStore(get_api_client(), account_ledger=get_account_ledger())


@lru_cache()
def get_customer_directory() -> HttpCustomerDirectory:
    return HttpCustomerDirectory(get_api_client())


def get_payment_service(
    account_ledger: AccountLedger = None,
    bill_store: BillStore = None
) -> PaymentService:
    """
    Build a PaymentService

    Args:
        account_ledger: Ledger to credit (HTTP ledger if None)
        bill_store: Store to save bills to after a payment, not saved if None
    """
    settings = get_settings()

    if account_ledger is None:
        account_ledger = get_account_ledger()

    return PaymentService(
        account_ledger=account_ledger,
        bill_store=bill_store,
        default_method=settings.default_payment_method
    )
