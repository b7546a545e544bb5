from fastapi import APIRouter

from quizmaster.api.quiz import router as quiz_router

api_router = APIRouter(prefix="/api")
api_router.include_router(quiz_router)
