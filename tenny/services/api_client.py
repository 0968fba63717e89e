from __future__ import annotations

import time
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Type, TypeVar

import httpx
from loguru import logger
from pydantic import BaseModel

from tenny.config import OCR_ENGINES, settings
from tenny.errors import (
    UNEXPECTED_RESPONSE_MSG,
    AuthExpiredError,
    HttpStatusError,
    ResponseFormatError,
    TransportError,
    error_message,
)
from tenny.services.session import Session

ProgressCallback = Callable[[int, int], None]

_UPLOAD_CHUNK = 64 * 1024

M = TypeVar("M", bound=BaseModel)


def parse_model(res: httpx.Response, model: Type[M]) -> M:
    """Validate a 2xx body into `model`; a malformed body becomes a ResponseFormatError."""
    try:
        return model.model_validate(res.json())
    except ValueError as e:
        logger.error("Response is not a valid {}: {}", model.__name__, e)
        raise ResponseFormatError(UNEXPECTED_RESPONSE_MSG, res.status_code) from e


def _clean_params(params: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    if not params:
        return None
    return {k: v for k, v in params.items() if v is not None}


def _iter_with_progress(body: bytes, on_progress: Optional[ProgressCallback]) -> Iterator[bytes]:
    total = len(body)
    sent = 0
    for start in range(0, total, _UPLOAD_CHUNK):
        chunk = body[start : start + _UPLOAD_CHUNK]
        yield chunk
        sent += len(chunk)
        if on_progress is not None:
            on_progress(sent, total)


class ApiClient:
    """
    One method per ledger backend endpoint.

    Every call returns the raw httpx.Response when the backend answers 2xx.
    Failures raise:
    - TransportError     network / timeout
    - AuthExpiredError   401 (session is cleared and on_unauthorized fired first)
    - HttpStatusError    any other non-2xx
    No retries; the user resubmits.
    """

    def __init__(
        self,
        session: Session,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        upload_timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.session = session
        self.base_url = (base_url or settings.API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self.upload_timeout = upload_timeout if upload_timeout is not None else settings.UPLOAD_TIMEOUT
        self._client = httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ── core request ────────────────────────────────────
    def request(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        json_body: Any = None,
        content: Any = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        merged = {**(headers or {}), **self.session.auth_headers()}
        t0 = time.time()
        try:
            res = self._client.request(
                method,
                path,
                params=_clean_params(params),
                json=json_body,
                content=content,
                headers=merged,
                timeout=timeout if timeout is not None else self.timeout,
            )
        except httpx.HTTPError as e:
            logger.error("{} {} failed: {}", method, path, e)
            raise TransportError(f"Backend not reachable: {e}") from e

        logger.info("{} {} -> {} ({:.0f} ms)", method, path, res.status_code, (time.time() - t0) * 1000)

        if res.status_code == 401:
            self.session.expire()
            raise AuthExpiredError(
                error_message(res, "Your session has expired. Please log in again."), 401, res
            )
        if res.is_error:
            raise HttpStatusError(
                error_message(res, f"Request failed with status {res.status_code}"), res.status_code, res
            )
        return res

    def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> httpx.Response:
        return self.request("GET", path, params=params)

    def post(self, path: str, json_body: Any = None) -> httpx.Response:
        return self.request("POST", path, json_body=json_body)

    def put(self, path: str, json_body: Any = None) -> httpx.Response:
        return self.request("PUT", path, json_body=json_body)

    def delete(self, path: str) -> httpx.Response:
        return self.request("DELETE", path)

    # ── auth ────────────────────────────────────────────
    def register(self, email: str, password: str, name: str) -> httpx.Response:
        return self.post("/api/auth/register", {"email": email, "password": password, "name": name})

    def login(self, email: str, password: str) -> httpx.Response:
        return self.post("/api/auth/login", {"email": email, "password": password})

    def logout(self) -> None:
        self.session.clear()

    def get_current_user(self) -> httpx.Response:
        return self.get("/api/auth/me")

    # ── ocr ─────────────────────────────────────────────
    def process_image(
        self,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
        engine: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> httpx.Response:
        """Multipart upload of a bill image; `engine` is passed through to the backend."""
        if engine is not None and engine not in OCR_ENGINES:
            raise ValueError(f"Unknown OCR engine: {engine}")

        files = {"image": (filename, content, content_type or "application/octet-stream")}
        data = {"engine": engine} if engine else None
        # encode once so the body length is known for progress reporting
        prepared = self._client.build_request("POST", "/api/ocr/process", files=files, data=data)
        body = prepared.read()
        headers = {
            "Content-Type": prepared.headers["Content-Type"],
            "Content-Length": str(len(body)),
        }
        return self.request(
            "POST",
            "/api/ocr/process",
            content=_iter_with_progress(body, on_progress),
            headers=headers,
            timeout=self.upload_timeout,
        )

    # ── transactions ────────────────────────────────────
    def get_transactions(self, filters: Optional[Mapping[str, Any]] = None) -> httpx.Response:
        return self.get("/api/transactions", params=filters)

    def get_transaction(self, transaction_id: str) -> httpx.Response:
        return self.get(f"/api/transactions/{transaction_id}")

    def create_transaction(self, data: Dict[str, Any]) -> httpx.Response:
        return self.post("/api/transactions", data)

    def update_transaction(self, transaction_id: str, data: Dict[str, Any]) -> httpx.Response:
        return self.put(f"/api/transactions/{transaction_id}", data)

    def delete_transaction(self, transaction_id: str) -> httpx.Response:
        return self.delete(f"/api/transactions/{transaction_id}")

    # ── categories ──────────────────────────────────────
    def get_categories(self) -> httpx.Response:
        return self.get("/api/categories")

    def get_category(self, category_id: str) -> httpx.Response:
        return self.get(f"/api/categories/{category_id}")

    def create_category(self, data: Dict[str, Any]) -> httpx.Response:
        return self.post("/api/categories", data)

    def update_category(self, category_id: str, data: Dict[str, Any]) -> httpx.Response:
        return self.put(f"/api/categories/{category_id}", data)

    def delete_category(self, category_id: str) -> httpx.Response:
        return self.delete(f"/api/categories/{category_id}")

    # ── users ───────────────────────────────────────────
    def get_users(self, filters: Optional[Mapping[str, Any]] = None) -> httpx.Response:
        return self.get("/api/users", params=filters)

    def get_user(self, user_id: str) -> httpx.Response:
        return self.get(f"/api/users/{user_id}")

    def create_user(self, data: Dict[str, Any]) -> httpx.Response:
        return self.post("/api/users", data)

    def update_user(self, user_id: str, data: Dict[str, Any]) -> httpx.Response:
        return self.put(f"/api/users/{user_id}", data)

    def delete_user(self, user_id: str) -> httpx.Response:
        return self.delete(f"/api/users/{user_id}")

    def get_profile(self) -> httpx.Response:
        return self.get("/api/users/profile")

    def update_profile(self, data: Dict[str, Any]) -> httpx.Response:
        return self.put("/api/users/profile", data)

    # ── reports ─────────────────────────────────────────
    def get_spending_by_category(self, start_date: str, end_date: str) -> httpx.Response:
        return self.get("/api/reports/spending-by-category", params={"startDate": start_date, "endDate": end_date})

    def get_monthly_spending(self, year: int) -> httpx.Response:
        return self.get("/api/reports/monthly-spending", params={"year": year})

    def get_transaction_trends(self, period: str) -> httpx.Response:
        return self.get("/api/reports/transaction-trends", params={"period": period})
