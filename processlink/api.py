from fastapi import APIRouter

from processlink.locations.router import router as locations_router

api_router = APIRouter()
api_router.include_router(locations_router, tags=["locations"])
