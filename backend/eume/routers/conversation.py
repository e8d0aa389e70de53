"""
대화 관련 라우터 (환자 단말용)

단말은 X-User-ID 헤더로 사용자를 식별한다.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from eume.config import RECENT_MESSAGE_LIMIT
from eume.crud import conversation as crud_conversation
from eume.database import get_db
from eume.dependencies import get_device_user_id, get_orchestrator, get_question_system
from eume.errors import ValidationError
from eume.orchestrator import SessionOrchestrator
from eume.personalization import PersonalizedQuestionSystem
from eume.routers.reports import ReportResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/conversation",
    tags=["대화"]
)


# 요청/응답 모델
class TurnRequest(BaseModel):
    text: str


class TurnResponse(BaseModel):
    user_text: str
    response_text: str
    stage: str
    used_fallback: bool
    trauma_flagged: bool
    matched_trauma_keywords: List[str]


class MessageResponse(BaseModel):
    role: str
    content: str
    timestamp: int

    class Config:
        from_attributes = True


class PhotoSessionResponse(BaseModel):
    id: int
    image_analysis: Optional[str]
    start_time: int

    class Config:
        from_attributes = True


class HistoryResponse(BaseModel):
    messages: List[MessageResponse]
    last_interaction_time: int
    photo_session: Optional[PhotoSessionResponse]


class PhotoUploadResponse(BaseModel):
    session_id: int
    image_analysis: str


class EndSessionResponse(BaseModel):
    report: ReportResponse
    used_fallback: bool


class QuestionResponse(BaseModel):
    question: str
    keywords: List[str]
    expected_effectiveness: float
    reasoning: str


class QuestionFeedback(BaseModel):
    keywords: List[str] = Field(..., min_length=1)
    was_effective: bool


class LearningStatusResponse(BaseModel):
    total_topics: int
    effective_topics: int
    average_success_rate: float
    top_keywords: List[str]


@router.post("/turn", response_model=TurnResponse)
async def conversation_turn(
    request: TurnRequest,
    user_id: str = Depends(get_device_user_id),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator)
):
    """사용자 발화 한 건을 처리하고 응답을 돌려준다"""
    result = await orchestrator.handle_turn(user_id, request.text)
    return TurnResponse(**result.__dict__)


@router.get("/history", response_model=HistoryResponse)
async def conversation_history(
    limit: int = Query(RECENT_MESSAGE_LIMIT, ge=1, le=100),
    user_id: str = Depends(get_device_user_id),
    db: Session = Depends(get_db)
):
    """최근 대화 기록과 활성 사진 세션"""
    return crud_conversation.get_conversation_history(db, user_id, limit=limit)


@router.post("/photo", response_model=PhotoUploadResponse)
async def upload_photo(
    image: UploadFile = File(...),
    user_id: str = Depends(get_device_user_id),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator)
):
    """사진을 분석해 회상 세션을 시작"""
    if not image.content_type or not image.content_type.startswith("image/"):
        raise ValidationError("image", "이미지 파일만 업로드할 수 있습니다.")

    image_bytes = await image.read()
    logger.info(f"Photo uploaded by user {user_id}: {image.filename} ({len(image_bytes)} bytes)")
    return await orchestrator.start_photo_session(user_id, image_bytes, image.content_type)


@router.delete("/photo")
async def end_photo_session(
    user_id: str = Depends(get_device_user_id),
    db: Session = Depends(get_db)
):
    """활성 사진 세션 종료"""
    deactivated = crud_conversation.deactivate_photo_session(db, user_id)
    return {"deactivated": deactivated}


@router.post("/end", response_model=EndSessionResponse)
async def end_conversation(
    user_id: str = Depends(get_device_user_id),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator)
):
    """대화를 마치고 인지 평가 리포트를 생성"""
    result = await orchestrator.end_session(user_id)
    return {"report": result.report, "used_fallback": result.used_fallback}


@router.get("/next-question", response_model=QuestionResponse)
async def next_question(
    context: str = "",
    user_id: str = Depends(get_device_user_id),
    questions: PersonalizedQuestionSystem = Depends(get_question_system)
):
    """개인화된 다음 질문"""
    question = await questions.generate_personalized_question(user_id, context)
    return QuestionResponse(**question.__dict__)


@router.post("/question-feedback")
async def question_feedback(
    feedback: QuestionFeedback,
    user_id: str = Depends(get_device_user_id),
    questions: PersonalizedQuestionSystem = Depends(get_question_system)
):
    """질문 효과 기록"""
    questions.record_question_effectiveness(user_id, feedback.keywords, feedback.was_effective)
    return {"recorded": True}


@router.get("/learning-status", response_model=LearningStatusResponse)
async def learning_status(
    user_id: str = Depends(get_device_user_id),
    questions: PersonalizedQuestionSystem = Depends(get_question_system)
):
    """주제 학습 현황"""
    return questions.get_learning_status(user_id)
