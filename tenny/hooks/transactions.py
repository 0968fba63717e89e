from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from loguru import logger

from tenny.config import settings
from tenny.errors import ApiError
from tenny.hooks.query import Query
from tenny.models.transaction import Transaction, TransactionDraft, TransactionsPage
from tenny.services.api_client import ApiClient, parse_model
from tenny.services.query_cache import QueryCache

TRANSACTIONS = "transactions"
TRANSACTION = "transaction"
TRANSACTIONS_ALL = "transactions:all"

ALL_PAGE_SIZE = 100


def use_transactions(
    client: ApiClient,
    cache: QueryCache,
    filters: Optional[Mapping[str, Any]] = None,
) -> Query[TransactionsPage]:
    """List query: page, limit, search, category, startDate, endDate, sortBy, sortDirection."""

    def fetch(params: Dict[str, Any]) -> TransactionsPage:
        res = client.get_transactions(params)
        return parse_model(res, TransactionsPage)

    query = Query(cache, TRANSACTIONS, filters, fetch, settings.TRANSACTIONS_DEDUP)
    return query.refresh()


def use_all_transactions(
    client: ApiClient,
    cache: QueryCache,
    filters: Optional[Mapping[str, Any]] = None,
    page_size: int = ALL_PAGE_SIZE,
) -> Query[TransactionsPage]:
    """Every transaction matching `filters`, walking the backend's pages into one TransactionsPage."""

    def fetch(params: Dict[str, Any]) -> TransactionsPage:
        params = {**params, "limit": page_size}
        first = parse_model(client.get_transactions({**params, "page": 1}), TransactionsPage)
        rows = list(first.transactions)
        for n in range(2, first.pages + 1):
            page = parse_model(client.get_transactions({**params, "page": n}), TransactionsPage)
            if not page.transactions:
                break
            rows.extend(page.transactions)
        if first.pages > 1:
            logger.debug("Collected {} transactions over {} pages", len(rows), first.pages)
        return TransactionsPage(transactions=rows, total=max(first.total, len(rows)), page=1, pages=1)

    query = Query(cache, TRANSACTIONS_ALL, filters, fetch, settings.TRANSACTIONS_DEDUP)
    return query.refresh()

def use_transaction(client: ApiClient, cache: QueryCache, transaction_id: Optional[str]) -> Query[Transaction]:
    def fetch(params: Dict[str, Any]) -> Transaction:
        res = client.get_transaction(params["id"])
        return parse_model(res, Transaction)

    query = Query(
        cache,
        TRANSACTION,
        {"id": transaction_id},
        fetch,
        settings.TRANSACTIONS_DEDUP,
        enabled=bool(transaction_id),
    )
    return query.refresh()


def _invalidate(cache: QueryCache) -> None:
    cache.invalidate(TRANSACTIONS)
    cache.invalidate(TRANSACTION)
    cache.invalidate(TRANSACTIONS_ALL)


def create_transaction(client: ApiClient, cache: QueryCache, draft: TransactionDraft) -> Dict[str, Any]:
    res = client.create_transaction(draft.to_payload())
    _invalidate(cache)
    logger.info("Created transaction merchant={} amount={}", draft.merchant, draft.amount)
    return res.json() if res.content else {}


def update_transaction(
    client: ApiClient, cache: QueryCache, transaction_id: str, draft: TransactionDraft
) -> Dict[str, Any]:
    res = client.update_transaction(transaction_id, draft.to_payload())
    _invalidate(cache)
    return res.json() if res.content else {}


def delete_transaction(
    client: ApiClient,
    cache: QueryCache,
    transaction_id: str,
    query: Optional[Query[TransactionsPage]] = None,
) -> None:
    """
    Remove a transaction. When the list query is given, the row disappears
    locally first and comes back via refetch if the backend refuses.
    """
    if query is not None and query.data is not None:
        page = query.data
        remaining = [t for t in page.transactions if t.id != transaction_id]
        query.mutate(
            page.model_copy(update={"transactions": remaining, "total": max(page.total - 1, len(remaining))}),
            revalidate=False,
        )
    try:
        client.delete_transaction(transaction_id)
    except ApiError:
        if query is not None:
            query.refresh(force=True)
        raise
    _invalidate(cache)
