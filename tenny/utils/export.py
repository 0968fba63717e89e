from __future__ import annotations

from typing import List

import pandas as pd

from tenny.models.transaction import Transaction

EXPORT_COLUMNS = ["id", "date", "merchant", "category", "amount", "notes", "createdAt"]


def transactions_frame(transactions: List[Transaction]) -> pd.DataFrame:
    rows = [t.model_dump(by_alias=True, exclude={"items"}) for t in transactions]
    df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
    if not df.empty:
        df = df.sort_values("date", ascending=False, kind="stable").reset_index(drop=True)
    return df


def transactions_csv(transactions: List[Transaction]) -> bytes:
    return transactions_frame(transactions).to_csv(index=False).encode("utf-8")
