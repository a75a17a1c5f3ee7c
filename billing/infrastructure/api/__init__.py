"""billing rest api client and collaborators"""

from .accounts import HttpAccountLedger
from .bills import HttpBillStore
from .catalog import HttpCatalog
from .client import ApiClient, SessionStore
from .customers import HttpCustomerDirectory

__all__ = [
    "ApiClient",
    "SessionStore",
    "HttpAccountLedger",
    "HttpBillStore",
    "HttpCatalog",
    "HttpCustomerDirectory",
]
