from fastapi import APIRouter

from stylesquare.api.v1.auth import router as auth_router
from stylesquare.api.v1.documents import router as documents_router
from stylesquare.api.v1.follows import router as follows_router
from stylesquare.api.v1.friends import router as friends_router
from stylesquare.api.v1.history import router as history_router
from stylesquare.api.v1.notifications import router as notifications_router
from stylesquare.api.v1.posts import router as posts_router
from stylesquare.api.v1.settings import router as settings_router
from stylesquare.api.v1.topics import router as topics_router
from stylesquare.api.v1.users import router as users_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(friends_router)
api_router.include_router(follows_router)
api_router.include_router(settings_router)
api_router.include_router(posts_router)
api_router.include_router(topics_router)
api_router.include_router(history_router)
api_router.include_router(notifications_router)
api_router.include_router(documents_router)
