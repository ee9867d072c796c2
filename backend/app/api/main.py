from fastapi import APIRouter

from app.api.routes import grading, utils

api_router = APIRouter()
api_router.include_router(utils.router, tags=["utils"])
api_router.include_router(grading.router, prefix="/grading", tags=["grading"])
