from fastapi import APIRouter

from tenny.api.routes import proxy

api_router = APIRouter()

api_router.include_router(proxy.router)
