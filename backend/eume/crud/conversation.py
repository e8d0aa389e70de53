"""
대화 기록 관련 CRUD 조작

세션 타임아웃(30분)과 사진 세션 만료(1시간)는 백그라운드 작업 없이
읽기 시점에 지연 평가한다.
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from eume.config import PHOTO_SESSION_TTL_MS, RECENT_MESSAGE_LIMIT, SESSION_TIMEOUT_MS
from eume.database import now_millis, storage_operation, utcnow
from eume.errors import ValidationError
from eume.models.conversation import ConversationMessage, ConversationUser, PhotoSession

logger = logging.getLogger(__name__)

VALID_ROLES = ("user", "assistant", "system")


def _touch_user(db: Session, user_id: str) -> ConversationUser:
    """사용자 행을 생성하거나 last_interaction_at을 갱신 (커밋하지 않음)"""
    user = db.query(ConversationUser).filter(ConversationUser.user_id == user_id).first()
    if user is None:
        user = ConversationUser(user_id=user_id)
        db.add(user)
        db.flush()
    else:
        user.last_interaction_at = utcnow()
    return user


def add_message(
    db: Session,
    user_id: str,
    role: str,
    content: str,
    timestamp: Optional[int] = None
) -> ConversationMessage:
    """대화 메시지 추가"""
    if role not in VALID_ROLES:
        raise ValidationError("role", f"role must be one of {', '.join(VALID_ROLES)}")

    message = ConversationMessage(
        user_id=user_id,
        role=role,
        content=content,
        timestamp=timestamp if timestamp is not None else now_millis()
    )
    with storage_operation(db, "add conversation message"):
        _touch_user(db, user_id)
        db.add(message)
    db.refresh(message)
    return message


def cleanup_stale_messages(db: Session, user_id: str, now_ms: Optional[int] = None) -> int:
    """타임아웃(30분) 이전 메시지 삭제. 삭제한 건수를 반환"""
    now_ms = now_ms if now_ms is not None else now_millis()
    cutoff = now_ms - SESSION_TIMEOUT_MS

    with storage_operation(db, "cleanup stale messages"):
        deleted = db.query(ConversationMessage).filter(
            ConversationMessage.user_id == user_id,
            ConversationMessage.timestamp < cutoff
        ).delete(synchronize_session=False)

    if deleted:
        logger.info(f"Evicted {deleted} stale messages for user {user_id}")
    return deleted


def get_recent_messages(
    db: Session,
    user_id: str,
    limit: int = RECENT_MESSAGE_LIMIT,
    now_ms: Optional[int] = None
) -> List[ConversationMessage]:
    """최근 메시지를 시간 오름차순으로 조회 (만료 메시지 정리 후)"""
    cleanup_stale_messages(db, user_id, now_ms=now_ms)

    with storage_operation(db, "get recent messages"):
        messages = db.query(ConversationMessage).filter(
            ConversationMessage.user_id == user_id
        ).order_by(
            ConversationMessage.timestamp.desc(),
            ConversationMessage.id.desc()
        ).limit(limit).all()

    messages.reverse()
    return messages


def get_all_messages(
    db: Session,
    user_id: str,
    now_ms: Optional[int] = None
) -> List[ConversationMessage]:
    """남아 있는 전체 대화 기록 조회 (리포트 생성용)"""
    cleanup_stale_messages(db, user_id, now_ms=now_ms)

    with storage_operation(db, "get all messages"):
        return db.query(ConversationMessage).filter(
            ConversationMessage.user_id == user_id
        ).order_by(
            ConversationMessage.timestamp.asc(),
            ConversationMessage.id.asc()
        ).all()


def create_photo_session(
    db: Session,
    user_id: str,
    image_analysis: str,
    start_time: Optional[int] = None
) -> int:
    """기존 활성 세션을 비활성화하고 새 사진 세션을 생성. 새 세션 ID를 반환"""
    start_time = start_time if start_time is not None else now_millis()

    with storage_operation(db, "create photo session"):
        _touch_user(db, user_id)
        # 같은 사용자의 동시 요청을 직렬화 (SQLite에서는 무시됨)
        db.query(ConversationUser).filter(
            ConversationUser.user_id == user_id
        ).with_for_update().first()

        db.query(PhotoSession).filter(
            PhotoSession.user_id == user_id,
            PhotoSession.is_active.is_(True)
        ).update({PhotoSession.is_active: False}, synchronize_session=False)

        photo_session = PhotoSession(
            user_id=user_id,
            image_analysis=image_analysis,
            is_active=True,
            start_time=start_time
        )
        db.add(photo_session)
        db.flush()
        session_id = photo_session.id

    return session_id


def get_active_photo_session(
    db: Session,
    user_id: str,
    now_ms: Optional[int] = None
) -> Optional[PhotoSession]:
    """활성 사진 세션 조회. 1시간이 지난 세션은 비활성화하고 None을 반환"""
    now_ms = now_ms if now_ms is not None else now_millis()

    with storage_operation(db, "get active photo session"):
        photo_session = db.query(PhotoSession).filter(
            PhotoSession.user_id == user_id,
            PhotoSession.is_active.is_(True)
        ).order_by(PhotoSession.start_time.desc()).first()

        if photo_session is None:
            return None

        if now_ms - photo_session.start_time > PHOTO_SESSION_TTL_MS:
            photo_session.is_active = False
            logger.info(f"Photo session {photo_session.id} expired for user {user_id}")
            return None

    return photo_session


def deactivate_photo_session(db: Session, user_id: str) -> int:
    """사용자의 활성 사진 세션을 모두 비활성화"""
    with storage_operation(db, "deactivate photo session"):
        return db.query(PhotoSession).filter(
            PhotoSession.user_id == user_id,
            PhotoSession.is_active.is_(True)
        ).update({PhotoSession.is_active: False}, synchronize_session=False)


def get_conversation_history(
    db: Session,
    user_id: str,
    limit: int = RECENT_MESSAGE_LIMIT,
    now_ms: Optional[int] = None
) -> Dict:
    """최근 메시지, 활성 사진 세션, 마지막 상호작용 시각을 함께 조회"""
    now_ms = now_ms if now_ms is not None else now_millis()

    messages = get_recent_messages(db, user_id, limit=limit, now_ms=now_ms)
    photo_session = get_active_photo_session(db, user_id, now_ms=now_ms)

    last_interaction_time = max(m.timestamp for m in messages) if messages else now_ms

    return {
        "messages": messages,
        "last_interaction_time": last_interaction_time,
        "photo_session": photo_session
    }
