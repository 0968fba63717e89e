from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from tenny.api.router import api_router
from tenny.config import configure_logging, settings


def create_app(target: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    configure_logging()
    target = (target or settings.PROXY_TARGET).rstrip("/")

    app = FastAPI(
        title="Tenny Ledger Proxy",
        version="1.0.0",
        description="Forwards OCR and API calls from the ledger front-end to the backend origin",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.target = target
    app.state.upstream = httpx.AsyncClient(
        base_url=target,
        timeout=settings.UPLOAD_TIMEOUT,
        transport=transport,
    )

    app.include_router(api_router)

    @app.on_event("startup")
    async def _startup() -> None:
        logger.info("Proxy forwarding to {}", target)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await app.state.upstream.aclose()

    @app.get("/health")
    async def health(request: Request) -> Dict[str, Any]:
        status: Dict[str, Any] = {"ok": True, "service": "tenny-proxy", "target": target}
        try:
            await request.app.state.upstream.get("/", timeout=5)
            status["upstream"] = True
        except httpx.HTTPError as e:
            logger.warning("Upstream health check failed: {}", e)
            status["upstream"] = False
        return status

    return app


app = create_app()
