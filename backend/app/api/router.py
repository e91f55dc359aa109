from fastapi import APIRouter

from app.api.leaves import leaves_router

api_router = APIRouter()
api_router.include_router(leaves_router)
