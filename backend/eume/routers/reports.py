"""
인지 평가 리포트 조회 라우터
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from eume.crud import report as crud_report
from eume.database import get_db
from eume.errors import NotFoundError
from eume.routers.auth import get_current_user

router = APIRouter(
    prefix="/reports",
    tags=["리포트"]
)


class ReportResponse(BaseModel):
    """인지 평가 리포트 응답 모델"""
    id: int
    user_id: str
    message_count: int
    memory_score: float
    orientation_score: float
    language_score: float
    cdr_label: str
    behavioral_symptoms: List[str]
    risk_factors: List[str]
    recommendations: List[str]
    clinical_insight: Optional[str]
    summary: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


@router.get("/{user_id}", response_model=List[ReportResponse])
async def get_user_reports(
    user_id: str,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """사용자의 리포트 목록 (최신순)"""
    return crud_report.get_user_reports(db, user_id, skip=skip, limit=limit)


@router.get("/detail/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: int,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """리포트 상세"""
    report = crud_report.get_report(db, report_id)
    if not report:
        raise NotFoundError("report", str(report_id))
    return report
