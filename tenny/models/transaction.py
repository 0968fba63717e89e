from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_date_string(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str) and len(value) > 10 and value[4] == "-" and value[10] in "T ":
        # backend sends full timestamps for some rows
        return value[:10]
    return value


class LineItem(BaseModel):
    name: str
    price: Optional[float] = None
    quantity: Optional[float] = None


class TransactionDraft(BaseModel):
    """Create/update payload, as sent to POST/PUT /api/transactions."""

    model_config = ConfigDict(populate_by_name=True)

    amount: float = Field(ge=0)
    date: str  # YYYY-MM-DD
    merchant: str
    category: str
    notes: Optional[str] = None
    items: List[LineItem] = Field(default_factory=list)
    bill_image: Optional[str] = Field(default=None, alias="billImage")

    @field_validator("date", mode="before")
    @classmethod
    def _normalize_date(cls, v: Any) -> Any:
        return _as_date_string(v)

    @field_validator("date")
    @classmethod
    def _check_date(cls, v: str) -> str:
        date.fromisoformat(v)
        return v

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Transaction(TransactionDraft):
    id: str
    category: str = ""
    created_at: Optional[str] = Field(default=None, alias="createdAt")

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> Any:
        return str(v) if v is not None else v


class TransactionsPage(BaseModel):
    transactions: List[Transaction] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    pages: int = 1
