"""Main API router aggregating all module routers."""

from fastapi import APIRouter

from app.api.v1.endpoints import catalogue, exam_cycles, weekly_exams
from app.schemas.common import ErrorResponse

api_router = APIRouter(
    responses={
        404: {"model": ErrorResponse, "description": "Resource not found"},
        422: {"model": ErrorResponse, "description": "Validation error"},
    },
)

# Exam cycles (JEE -> NEET -> BITSAT rotation)
api_router.include_router(
    exam_cycles.router,
    prefix="/exam-cycles",
    tags=["Exam Cycles"],
)

# Weekly exams
api_router.include_router(
    weekly_exams.router,
    prefix="/weekly-exams",
    tags=["Weekly Exams"],
    responses={409: {"model": ErrorResponse, "description": "Illegal status transition"}},
)

# Class directory and syllabus catalogue
api_router.include_router(
    catalogue.router,
    tags=["Catalogue"],
)
