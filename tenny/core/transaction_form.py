from __future__ import annotations

import math
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from tenny.errors import FormError
from tenny.models.transaction import LineItem, Transaction, TransactionDraft


def initial_values(initial: Optional[Mapping[str, Any]] = None, today: Optional[date] = None) -> Dict[str, Any]:
    """Form state from an existing transaction, an OCR prefill, or nothing."""
    initial = initial or {}
    amount = initial.get("amount")
    return {
        "amount": "0" if amount in (None, "") else str(amount),
        "date": initial.get("date") or (today or date.today()).isoformat(),
        "merchant": initial.get("merchant") or "",
        "category": initial.get("category") or "",
        "notes": initial.get("notes") or "",
        "items": list(initial.get("items") or []),
        "billImage": initial.get("billImage") or initial.get("bill_image") or "",
    }


def values_from_transaction(txn: Transaction) -> Dict[str, Any]:
    return initial_values(txn.model_dump(by_alias=True))


def parse_amount(raw: Any) -> float:
    text = str(raw).strip() if raw is not None else ""
    if not text:
        raise FormError("amount", "Amount is required")
    try:
        amount = float(text)
    except ValueError:
        raise FormError("amount", f"Amount must be a number, got '{text}'")
    if not math.isfinite(amount) or amount < 0:
        raise FormError("amount", "Amount must be zero or more")
    return amount


def build_draft(values: Mapping[str, Any]) -> TransactionDraft:
    """Validate submitted form values and turn them into the API payload model."""
    amount = parse_amount(values.get("amount"))

    raw_date = str(values.get("date") or "").strip()
    try:
        date.fromisoformat(raw_date)
    except ValueError:
        raise FormError("date", "Date must be a calendar date (YYYY-MM-DD)")

    merchant = str(values.get("merchant") or "").strip()
    if not merchant:
        raise FormError("merchant", "Merchant is required")
    category = str(values.get("category") or "").strip()
    if not category:
        raise FormError("category", "Please choose a category")

    notes = str(values.get("notes") or "").strip()
    items: List[LineItem] = [LineItem.model_validate(i) for i in values.get("items") or []]
    return TransactionDraft(
        amount=amount,
        date=raw_date,
        merchant=merchant,
        category=category,
        notes=notes or None,
        items=items,
        bill_image=values.get("billImage") or None,
    )
