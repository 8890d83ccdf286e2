"""Exam cycle management endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.common import MessageResponse
from app.schemas.exam_cycle import (
    CycleScheduleResponse,
    CycleSuggestion,
    ExamCycleCreate,
    ExamCycleResponse,
    ExamCycleUpdate,
    RotationOverview,
)
from app.services.exam_cycle import ExamCycleService

router = APIRouter()


@router.get("", response_model=list[ExamCycleResponse])
def list_exam_cycles(
    db: Annotated[Session, Depends(get_db)],
    exam_type: str | None = None,
    is_active: bool | None = None,
):
    """
    List exam cycles, most recently created first.
    Progress and current week are computed at request time.
    """
    service = ExamCycleService(db)
    return service.list_cycles(exam_type=exam_type, is_active=is_active)


@router.post("", response_model=ExamCycleResponse, status_code=201)
def create_exam_cycle(
    request: ExamCycleCreate,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Create an exam cycle. New cycles start inactive.
    end_date defaults to start_date + 20 days.
    """
    service = ExamCycleService(db)
    return service.create_cycle(request)


@router.get("/suggestion", response_model=CycleSuggestion)
def suggest_next_cycle(
    db: Annotated[Session, Depends(get_db)],
    today: date | None = Query(None, description="Defaults to today in the school timezone"),
):
    """
    Suggest type, number and dates of the next cycle in the JEE -> NEET -> BITSAT rotation.
    """
    service = ExamCycleService(db)
    return service.suggest_next(today=today)


@router.get("/rotation", response_model=RotationOverview)
def get_rotation(
    db: Annotated[Session, Depends(get_db)],
):
    """
    Get the rotation order and which exam types currently have an active cycle.
    """
    service = ExamCycleService(db)
    return service.get_rotation()


@router.get("/{cycle_id}", response_model=ExamCycleResponse)
def get_exam_cycle(
    cycle_id: int,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Get exam cycle by ID.
    """
    service = ExamCycleService(db)
    return service.cycle_to_response(service.get_cycle(cycle_id))


@router.put("/{cycle_id}", response_model=ExamCycleResponse)
def update_exam_cycle(
    cycle_id: int,
    request: ExamCycleUpdate,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Replace a cycle's type, number and dates.
    """
    service = ExamCycleService(db)
    return service.update_cycle(cycle_id, request)


@router.post("/{cycle_id}/activate", response_model=ExamCycleResponse)
def activate_exam_cycle(
    cycle_id: int,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Activate a cycle. Any other active cycle of the same exam type is deactivated.
    """
    service = ExamCycleService(db)
    return service.activate_cycle(cycle_id)


@router.post("/{cycle_id}/deactivate", response_model=ExamCycleResponse)
def deactivate_exam_cycle(
    cycle_id: int,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Deactivate a cycle.
    """
    service = ExamCycleService(db)
    return service.deactivate_cycle(cycle_id)


@router.get("/{cycle_id}/schedule", response_model=CycleScheduleResponse)
def get_cycle_schedule(
    cycle_id: int,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Get the cycle's weekly exams grouped by week.
    """
    service = ExamCycleService(db)
    return service.get_cycle_schedule(cycle_id)


@router.delete("/{cycle_id}", response_model=MessageResponse)
def delete_exam_cycle(
    cycle_id: int,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Delete an exam cycle. Weekly exams in it are kept without a cycle.
    """
    service = ExamCycleService(db)
    service.delete_cycle(cycle_id)
    return MessageResponse(message="Exam cycle deleted successfully")
