"""API v1 router configuration."""

from fastapi import APIRouter

from rankwise.api.v1.endpoints import answers

router = APIRouter(prefix="/api/v1")

router.include_router(answers.router, prefix="/answers", tags=["answers"])
