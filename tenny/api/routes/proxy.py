"""
Tenny Ledger: backend proxy routes
/api/ocr/*    → <target>/api/ocr/*
/api/proxy/*  → <target>/*   (prefix stripped)
Method, query string, body and headers are passed through untouched.
"""
from __future__ import annotations

from typing import Dict

import httpx
from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from loguru import logger

router = APIRouter(tags=["proxy"])

METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]

HOP_BY_HOP = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "trailers",
    "transfer-encoding",
    "upgrade",
    "host",
    "content-length",
}


def _request_headers(request: Request) -> Dict[str, str]:
    return {k: v for k, v in request.headers.items() if k.lower() not in HOP_BY_HOP}


def _response_headers(res: httpx.Response) -> Dict[str, str]:
    # httpx already decoded the body, so the upstream encoding no longer applies
    drop = HOP_BY_HOP | {"content-encoding"}
    return {k: v for k, v in res.headers.items() if k.lower() not in drop}


async def forward(request: Request, upstream_path: str) -> Response:
    client: httpx.AsyncClient = request.app.state.upstream
    url = upstream_path
    if request.url.query:
        url = f"{url}?{request.url.query}"

    body = await request.body()
    try:
        res = await client.request(request.method, url, content=body, headers=_request_headers(request))
    except httpx.HTTPError as e:
        logger.exception("Proxy {} {} failed", request.method, url)
        return JSONResponse(status_code=502, content={"error": f"Upstream not reachable: {e}"})

    logger.info("proxy {} {} -> {}", request.method, url, res.status_code)
    return Response(content=res.content, status_code=res.status_code, headers=_response_headers(res))


@router.api_route("/api/ocr/{path:path}", methods=METHODS)
async def ocr_proxy(path: str, request: Request) -> Response:
    return await forward(request, f"/api/ocr/{path}")


@router.api_route("/api/proxy/{path:path}", methods=METHODS)
async def generic_proxy(path: str, request: Request) -> Response:
    return await forward(request, f"/{path}")
