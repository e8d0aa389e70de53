"""
라우터 공통 의존성
"""
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from eume.ai_service import AIService
from eume.database import get_db
from eume.errors import ValidationError
from eume.guidance import GuidanceRetriever
from eume.orchestrator import SessionOrchestrator
from eume.personalization import PersonalizedQuestionSystem
from eume.report_analysis import CognitiveScoreEstimator


@lru_cache()
def get_ai_service() -> AIService:
    """프로바이더 클라이언트는 프로세스당 한 번만 초기화"""
    return AIService()


@lru_cache()
def get_guidance() -> GuidanceRetriever:
    return GuidanceRetriever()


def get_estimator() -> CognitiveScoreEstimator:
    return CognitiveScoreEstimator()


def get_orchestrator(
    db: Session = Depends(get_db),
    ai: AIService = Depends(get_ai_service),
    guidance: GuidanceRetriever = Depends(get_guidance),
    estimator: CognitiveScoreEstimator = Depends(get_estimator)
) -> SessionOrchestrator:
    return SessionOrchestrator(db=db, ai=ai, guidance=guidance, estimator=estimator)


def get_question_system(
    db: Session = Depends(get_db),
    ai: AIService = Depends(get_ai_service)
) -> PersonalizedQuestionSystem:
    return PersonalizedQuestionSystem(db=db, ai=ai)


async def get_device_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """단말이 보내는 X-User-ID 헤더"""
    if not x_user_id or not x_user_id.strip():
        raise ValidationError("X-User-ID", "사용자 ID 헤더가 필요합니다.")
    return x_user_id.strip()
