"""
트라우마 정보 관련 CRUD 조작
"""
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from eume.crud.conversation import _touch_user
from eume.database import storage_operation
from eume.models.trauma import TraumaInfo


def save_trauma_info(
    db: Session,
    user_id: str,
    trauma_keywords: List[str],
    detailed_description: str = ""
) -> TraumaInfo:
    """트라우마 정보 저장 (기존 정보는 통째로 교체)"""
    with storage_operation(db, "save trauma info"):
        _touch_user(db, user_id)
        trauma = db.query(TraumaInfo).filter(TraumaInfo.user_id == user_id).first()

        if trauma:
            trauma.trauma_keywords = list(trauma_keywords)
            trauma.detailed_description = detailed_description
        else:
            trauma = TraumaInfo(
                user_id=user_id,
                trauma_keywords=list(trauma_keywords),
                detailed_description=detailed_description
            )
            db.add(trauma)

    db.refresh(trauma)
    return trauma


def get_trauma_info(db: Session, user_id: str) -> Optional[TraumaInfo]:
    """트라우마 정보 조회"""
    with storage_operation(db, "get trauma info"):
        return db.query(TraumaInfo).filter(TraumaInfo.user_id == user_id).first()


def check_for_trauma_content(db: Session, user_id: str, text: str) -> Dict:
    """텍스트에 트라우마 키워드가 포함되어 있는지 확인 (대소문자 무시 부분 문자열)"""
    trauma = get_trauma_info(db, user_id)

    if not trauma:
        return {"has_match": False, "matched_keywords": []}

    lowered = text.lower()
    matched = [kw for kw in trauma.trauma_keywords or [] if kw and kw.lower() in lowered]

    return {"has_match": len(matched) > 0, "matched_keywords": matched}


def delete_trauma_info(db: Session, user_id: str) -> bool:
    """트라우마 정보 삭제. 삭제한 레코드가 있으면 True"""
    with storage_operation(db, "delete trauma info"):
        deleted = db.query(TraumaInfo).filter(
            TraumaInfo.user_id == user_id
        ).delete(synchronize_session=False)
    return deleted > 0
