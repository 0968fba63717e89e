from __future__ import annotations

from typing import Any, Dict, List

from tenny.config import settings
from tenny.hooks.query import Query
from tenny.models.category import Category
from tenny.services.api_client import ApiClient
from tenny.services.query_cache import QueryCache

CATEGORIES = "categories"

# shown when the backend has no categories yet
DEFAULT_CATEGORY_NAMES = [
    "Food",
    "Transportation",
    "Entertainment",
    "Shopping",
    "Utilities",
    "Healthcare",
    "Housing",
    "Other",
]


def use_categories(client: ApiClient, cache: QueryCache) -> Query[List[Category]]:
    # GET /api/categories answers with a bare JSON array
    def fetch(_: Dict[str, Any]) -> List[Category]:
        res = client.get_categories()
        return [Category.model_validate(c) for c in res.json()]

    return Query(cache, CATEGORIES, None, fetch, settings.CATEGORIES_DEDUP).refresh()


def category_names(categories: List[Category]) -> List[str]:
    names = sorted({c.name for c in categories}, key=str.lower)
    return names or list(DEFAULT_CATEGORY_NAMES)


def create_category(client: ApiClient, cache: QueryCache, data: Dict[str, Any]) -> Dict[str, Any]:
    res = client.create_category(data)
    cache.invalidate(CATEGORIES)
    return res.json() if res.content else {}


def update_category(client: ApiClient, cache: QueryCache, category_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    res = client.update_category(category_id, data)
    cache.invalidate(CATEGORIES)
    return res.json() if res.content else {}


def delete_category(client: ApiClient, cache: QueryCache, category_id: str) -> None:
    client.delete_category(category_id)
    cache.invalidate(CATEGORIES)
