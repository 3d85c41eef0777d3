from fastapi import APIRouter

from newsfeed.api.routes import news, utils

api_router = APIRouter()
api_router.include_router(utils.router, prefix="/utils", tags=["utils"])
api_router.include_router(news.router, prefix="/news", tags=["news"])
