from fastapi import APIRouter

from app.api.v1.endpoints import auth, health, leaderboards, quiz_results


api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(quiz_results.router)
api_router.include_router(leaderboards.router)
