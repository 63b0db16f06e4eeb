"""API v1 router aggregation."""

from fastapi import APIRouter

from app.api.v1 import data_purchase, wallet

api_router = APIRouter()

# Include all v1 routers
api_router.include_router(wallet.router)
api_router.include_router(data_purchase.router)
