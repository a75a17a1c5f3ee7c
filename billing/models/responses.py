"""
Pydantic models for billing API responses
"""
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from billing.models.domain import PaymentAccount


class BillListResponse(BaseModel):
    """Page of GET /bills"""
    model_config = ConfigDict(populate_by_name=True)

    bills: List[Dict[str, Any]] = Field(default_factory=list, description="Raw bill documents")
    total: int = Field(0, description="Bills matching the query")
    current_page: int = Field(1, alias="currentPage")
    total_pages: int = Field(0, alias="totalPages")
    limit: Optional[int] = None


class TokenResponse(BaseModel):
    """Reply of POST /auth/refresh-token"""
    token: str = Field(..., min_length=1)


class PaymentAccountListResponse(BaseModel):
    """Reply of GET /payment-accounts"""
    accounts: List[PaymentAccount] = Field(
        default_factory=list,
        validation_alias=AliasChoices("accounts", "paymentAccounts"),
    )


class MessageResponse(BaseModel):
    """Error or status body with a message"""
    message: Optional[str] = None
    error: Optional[str] = None

    @property
    def text(self) -> Optional[str]:
        return self.message or self.error
