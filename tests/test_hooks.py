"""
Data-fetching hooks: Query lifecycle plus the transaction and category hooks
running against a mocked backend.
"""

import httpx
import pytest

from tenny.errors import HttpStatusError
from tenny.hooks.categories import (
    DEFAULT_CATEGORY_NAMES,
    category_names,
    create_category,
    use_categories,
)
from tenny.hooks.query import Query
from tenny.hooks.transactions import (
    TRANSACTIONS,
    TRANSACTIONS_ALL,
    create_transaction,
    delete_transaction,
    use_all_transactions,
    use_transaction,
    use_transactions,
)
from tenny.models.category import Category
from tenny.models.transaction import TransactionDraft

from conftest import json_reply, txn


def _page(*rows, total=None):
    return {"transactions": list(rows), "total": len(rows) if total is None else total, "page": 1, "pages": 1}


class TestQuery:
    def test_loading_until_first_answer(self, cache):
        q = Query(cache, "x", None, lambda f: 1, 10)
        assert q.is_loading

        q.refresh()

        assert not q.is_loading
        assert q.data == 1
        assert q.error is None

    def test_disabled_query_never_fetches(self, cache):
        calls = []
        q = Query(cache, "x", None, lambda f: calls.append(f), 10, enabled=False)

        q.refresh()

        assert calls == []
        assert not q.is_loading
        assert q.data is None

    def test_error_keeps_previous_data(self, cache):
        answers = iter([["a"], HttpStatusError("Server exploded", 500)])

        def fetch(_):
            a = next(answers)
            if isinstance(a, Exception):
                raise a
            return a

        q = Query(cache, "x", None, fetch, 10).refresh()
        q.refresh(force=True)

        assert q.data == ["a"]
        assert q.error_message == "Server exploded"

    def test_non_api_error_gets_generic_message(self, cache):
        def fetch(_):
            raise ValueError("bad json")

        q = Query(cache, "x", None, fetch, 10).refresh()

        assert q.error_message == "Unexpected response from server"

    def test_response_after_unmount_is_dropped(self, cache):
        q = None

        def fetch(_):
            q.unmount()
            return "late"

        q = Query(cache, "x", None, fetch, 10)
        q.refresh()

        assert q.data is None

    def test_response_for_old_filters_is_dropped(self, cache):
        q = None
        switched = []

        def fetch(filters):
            if not switched:
                switched.append(True)
                q.set_filters({"page": 2})
            return f"page {filters.get('page')}"

        q = Query(cache, "x", {"page": 1}, fetch, 10)
        q.refresh()

        assert q.filters == {"page": 2}
        assert q.data == "page 2"

    def test_mutate_is_visible_to_other_readers(self, cache):
        q = Query(cache, "x", None, lambda f: "server", 10).refresh()

        q.mutate("local", revalidate=False)

        assert q.data == "local"
        assert cache.peek("x") == "local"


class TestTransactionHooks:
    def test_identical_filters_make_one_network_call(self, make_client, cache):
        client, backend = make_client(json_reply(_page(txn(1, 5))))

        a = use_transactions(client, cache, {"page": 1, "limit": 10})
        b = use_transactions(client, cache, {"limit": 10, "page": 1})

        assert backend.count == 1
        assert a.data == b.data
        assert a.data.transactions[0].id == "1"

    def test_none_filters_are_not_sent(self, make_client, cache):
        client, backend = make_client(json_reply(_page()))

        use_transactions(client, cache, {"page": 1, "search": None})

        assert dict(backend.requests[0].url.params) == {"page": "1"}

    def test_distinct_filters_fetch_separately(self, make_client, cache):
        client, backend = make_client(json_reply(_page()))

        use_transactions(client, cache, {"page": 1})
        use_transactions(client, cache, {"page": 2})

        assert backend.count == 2

    def test_create_invalidates_lists(self, make_client, cache):
        def reply(request):
            if request.method == "POST":
                return httpx.Response(201, json={"id": 9})
            return httpx.Response(200, json=_page())

        client, backend = make_client(reply)
        use_transactions(client, cache, {"page": 1})

        create_transaction(
            client, cache, TransactionDraft(amount=12.5, date="2024-02-01", merchant="Cafe", category="Food")
        )
        use_transactions(client, cache, {"page": 1})

        assert [r.method for r in backend.requests] == ["GET", "POST", "GET"]

    def test_single_transaction_without_id_is_disabled(self, make_client, cache):
        client, backend = make_client(json_reply({}))

        q = use_transaction(client, cache, None)

        assert backend.count == 0
        assert q.data is None

    def test_single_transaction_not_found(self, make_client, cache):
        client, _ = make_client(json_reply({"message": "Transaction not found"}, 404))

        q = use_transaction(client, cache, "42")

        assert q.data is None
        assert q.error_message == "Transaction not found"


class TestAllTransactions:
    def test_every_page_is_collected(self, make_client, cache):
        pages = {
            "1": [txn(1, 5), txn(2, 6)],
            "2": [txn(3, 7), txn(4, 8)],
            "3": [txn(5, 9)],
        }

        def reply(request):
            rows = pages[request.url.params["page"]]
            return httpx.Response(200, json={"transactions": rows, "total": 5, "page": 1, "pages": 3})

        client, backend = make_client(reply)

        q = use_all_transactions(client, cache, {"startDate": "2024-02-01", "endDate": "2024-02-29"}, page_size=2)

        assert [r.url.params["page"] for r in backend.requests] == ["1", "2", "3"]
        assert {r.url.params["limit"] for r in backend.requests} == {"2"}
        assert backend.requests[2].url.params["startDate"] == "2024-02-01"
        assert [t.id for t in q.data.transactions] == ["1", "2", "3", "4", "5"]
        assert q.data.total == 5

    def test_single_page_is_one_request(self, make_client, cache):
        client, backend = make_client(json_reply(_page(txn(1, 5))))

        q = use_all_transactions(client, cache)

        assert backend.count == 1
        assert backend.requests[0].url.params["limit"] == "100"
        assert q.data.total == 1

    def test_create_invalidates_the_full_list(self, make_client, cache):
        def reply(request):
            if request.method == "POST":
                return httpx.Response(201, json={"id": 9})
            return httpx.Response(200, json=_page())

        client, _ = make_client(reply)
        use_all_transactions(client, cache)

        create_transaction(
            client, cache, TransactionDraft(amount=3, date="2024-02-01", merchant="Cafe", category="Food")
        )

        assert cache.peek(TRANSACTIONS_ALL) is None


class TestOptimisticDelete:
    def test_row_disappears_before_the_backend_answers(self, make_client, cache):
        seen = {}
        q = None

        def reply(request):
            if request.method == "DELETE":
                seen["rows_during_delete"] = [t.id for t in q.data.transactions]
                return httpx.Response(204)
            return httpx.Response(200, json=_page(txn(1, 5), txn(2, 6)))

        client, _ = make_client(reply)
        q = use_transactions(client, cache, {"page": 1})

        delete_transaction(client, cache, "1", query=q)

        assert seen["rows_during_delete"] == ["2"]
        assert cache.peek(TRANSACTIONS, {"page": 1}) is None

    def test_rollback_when_backend_refuses(self, make_client, cache):
        q = None

        def reply(request):
            if request.method == "DELETE":
                return httpx.Response(500, json={"message": "Cannot delete"})
            return httpx.Response(200, json=_page(txn(1, 5), txn(2, 6)))

        client, _ = make_client(reply)
        q = use_transactions(client, cache, {"page": 1})

        with pytest.raises(HttpStatusError) as exc:
            delete_transaction(client, cache, "1", query=q)

        assert exc.value.message == "Cannot delete"
        assert [t.id for t in q.data.transactions] == ["1", "2"]
        assert q.data.total == 2


class TestCategoryHooks:
    def test_categories_are_cached(self, make_client, cache):
        client, backend = make_client(json_reply([{"id": 1, "name": "Food"}, {"id": 2, "name": "Bills"}]))

        use_categories(client, cache)
        q = use_categories(client, cache)

        assert backend.count == 1
        assert [c.name for c in q.data] == ["Food", "Bills"]
        assert q.data[0].id == "1"

    def test_create_category_refetches(self, make_client, cache):
        def reply(request):
            if request.method == "POST":
                return httpx.Response(201, json={"id": 3, "name": "Pets"})
            return httpx.Response(200, json=[])

        client, backend = make_client(reply)
        use_categories(client, cache)

        create_category(client, cache, {"name": "Pets"})
        use_categories(client, cache)

        assert backend.count == 3

    def test_names_fall_back_to_defaults(self):
        assert category_names([]) == DEFAULT_CATEGORY_NAMES
        assert category_names([Category(id="1", name="b"), Category(id="2", name="A"), Category(id="3", name="b")]) == [
            "A",
            "b",
        ]
