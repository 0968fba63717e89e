"""
Tenny Ledger: transaction form
Shared by the new-transaction and transaction-detail pages.
"""
from datetime import date
from typing import Any, Dict, List, Optional

import streamlit as st

from tenny.core.transaction_form import initial_values
from theme import cur


def transaction_form(
    key: str,
    categories: List[str],
    initial: Optional[Dict[str, Any]] = None,
    submit_label: str = "Save Transaction",
    busy: bool = False,
) -> Optional[Dict[str, Any]]:
    """Render the form; returns the raw submitted values or None."""
    v = initial_values(initial)
    options = list(categories)
    if v["category"] and v["category"] not in options:
        options.insert(0, v["category"])

    try:
        current_date = date.fromisoformat(v["date"])
    except ValueError:
        current_date = date.today()

    with st.form(key):
        c1, c2 = st.columns(2)
        amount = c1.text_input("Amount", value=v["amount"], help="e.g. 12.50")
        when = c2.date_input("Date", value=current_date)
        c3, c4 = st.columns(2)
        merchant = c3.text_input("Merchant", value=v["merchant"])
        category = c4.selectbox(
            "Category",
            options,
            index=options.index(v["category"]) if v["category"] in options else None,
            placeholder="Select a category",
        )
        notes = st.text_area("Notes", value=v["notes"], height=90)

        if v["items"]:
            st.markdown("**Items**")
            for item in v["items"]:
                qty = f" × {item['quantity']:g}" if item.get("quantity") else ""
                price = cur(item["price"]) if item.get("price") is not None else ""
                st.markdown(f"- {item.get('name', '')}{qty} {price}")

        submitted = st.form_submit_button(
            "Saving..." if busy else submit_label, type="primary", disabled=busy, use_container_width=True
        )

    if not submitted:
        return None
    return {
        "amount": amount,
        "date": when.isoformat() if when else "",
        "merchant": merchant,
        "category": category or "",
        "notes": notes,
        "items": v["items"],
        "billImage": v["billImage"],
    }
