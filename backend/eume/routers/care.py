"""
보호자용 케어 설정 라우터 (트라우마 정보, 주제 효과)
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from eume.crud import topic as crud_topic
from eume.crud import trauma as crud_trauma
from eume.database import get_db
from eume.errors import NotFoundError, ValidationError
from eume.routers.auth import get_current_user

router = APIRouter(
    prefix="/care",
    tags=["케어 설정"]
)


class TraumaUpdate(BaseModel):
    trauma_keywords: List[str]
    detailed_description: str = ""


class TraumaResponse(BaseModel):
    user_id: str
    trauma_keywords: List[str]
    detailed_description: Optional[str]
    updated_at: datetime

    class Config:
        from_attributes = True


class TraumaCheckRequest(BaseModel):
    text: str


class TraumaCheckResponse(BaseModel):
    has_match: bool
    matched_keywords: List[str]


class TopicResponse(BaseModel):
    keywords: List[str]
    success_count: int
    total_count: int
    success_rate: float
    last_success_at: Optional[datetime]

    class Config:
        from_attributes = True


class EffectivenessResponse(BaseModel):
    keywords: List[str]
    effectiveness: float = Field(..., ge=0.0, le=1.0)


@router.get("/{user_id}/trauma", response_model=TraumaResponse)
async def get_trauma(
    user_id: str,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """트라우마 정보 조회"""
    trauma = crud_trauma.get_trauma_info(db, user_id)
    if not trauma:
        raise NotFoundError("trauma info", user_id)
    return trauma


@router.put("/{user_id}/trauma", response_model=TraumaResponse)
async def save_trauma(
    user_id: str,
    trauma_data: TraumaUpdate,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """트라우마 정보 저장 (전체 교체)"""
    keywords = [kw.strip() for kw in trauma_data.trauma_keywords if kw.strip()]
    return crud_trauma.save_trauma_info(db, user_id, keywords, trauma_data.detailed_description)


@router.delete("/{user_id}/trauma", status_code=status.HTTP_204_NO_CONTENT)
async def delete_trauma(
    user_id: str,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """트라우마 정보 삭제"""
    if not crud_trauma.delete_trauma_info(db, user_id):
        raise NotFoundError("trauma info", user_id)


@router.post("/{user_id}/trauma/check", response_model=TraumaCheckResponse)
async def check_trauma(
    user_id: str,
    request: TraumaCheckRequest,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """텍스트가 트라우마 키워드를 포함하는지 확인"""
    return crud_trauma.check_for_trauma_content(db, user_id, request.text)


@router.get("/{user_id}/topics", response_model=List[TopicResponse])
async def get_topics(
    user_id: str,
    limit: int = Query(10, ge=1, le=50),
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """효과적인 주제 목록"""
    return crud_topic.get_top_effective_topics(db, user_id, limit=limit)


@router.get("/{user_id}/topics/effectiveness", response_model=EffectivenessResponse)
async def get_effectiveness(
    user_id: str,
    keywords: List[str] = Query(...),
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """키워드 조합의 예상 효과성"""
    cleaned = [kw.strip() for kw in keywords if kw.strip()]
    if not cleaned:
        raise ValidationError("keywords", "키워드가 필요합니다.")
    return {"keywords": cleaned, "effectiveness": crud_topic.get_effectiveness(db, user_id, cleaned)}
