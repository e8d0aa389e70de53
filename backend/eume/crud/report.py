"""
인지 평가 리포트 관련 CRUD 조작
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from eume.database import storage_operation
from eume.models.report import CognitiveReport
from eume.report_analysis import CognitiveAssessment


def create_report(
    db: Session,
    user_id: str,
    assessment: CognitiveAssessment,
    message_count: int,
    summary: str
) -> CognitiveReport:
    """평가 결과를 리포트로 저장"""
    report = CognitiveReport(
        user_id=user_id,
        message_count=message_count,
        memory_score=assessment.memory_score,
        orientation_score=assessment.orientation_score,
        language_score=assessment.language_score,
        cdr_label=assessment.cdr_label,
        behavioral_symptoms=list(assessment.behavioral_symptoms),
        risk_factors=list(assessment.risk_factors),
        recommendations=list(assessment.recommendations),
        clinical_insight=assessment.clinical_insight,
        summary=summary
    )

    with storage_operation(db, "create report"):
        db.add(report)
    db.refresh(report)

    return report


def get_report(db: Session, report_id: int) -> Optional[CognitiveReport]:
    """리포트 ID로 조회"""
    with storage_operation(db, "get report"):
        return db.query(CognitiveReport).filter(CognitiveReport.id == report_id).first()


def get_user_reports(db: Session, user_id: str, skip: int = 0, limit: int = 50) -> List[CognitiveReport]:
    """사용자의 리포트 목록 (최신순)"""
    with storage_operation(db, "get user reports"):
        return db.query(CognitiveReport).filter(
            CognitiveReport.user_id == user_id
        ).order_by(
            CognitiveReport.created_at.desc(),
            CognitiveReport.id.desc()
        ).offset(skip).limit(limit).all()
