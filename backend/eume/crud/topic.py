"""
효과적인 대화 주제 관련 CRUD 조작
"""
import json
import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from eume.crud.conversation import _touch_user
from eume.database import storage_operation, utcnow
from eume.models.topic import EffectiveTopic

logger = logging.getLogger(__name__)

NEUTRAL_PRIOR = 0.5
MIN_TOTAL_FOR_RANKING = 2
MIN_TOTAL_FOR_CONFIDENCE = 3


def topic_key(keywords: Iterable[str]) -> str:
    """키워드 조합의 정규화 키 (정렬 + 중복 제거한 JSON 배열)"""
    return json.dumps(sorted(set(keywords)), ensure_ascii=False)


def get_topic(db: Session, user_id: str, keywords: Iterable[str]) -> Optional[EffectiveTopic]:
    """정규화 키가 정확히 일치하는 주제를 조회"""
    with storage_operation(db, "get effective topic"):
        return db.query(EffectiveTopic).filter(
            EffectiveTopic.user_id == user_id,
            EffectiveTopic.topic_keywords == topic_key(keywords)
        ).first()


def record_outcome(
    db: Session,
    user_id: str,
    keywords: List[str],
    was_successful: bool
) -> EffectiveTopic:
    """주제의 대화 결과를 기록하고 성공률을 갱신"""
    key = topic_key(keywords)

    with storage_operation(db, "record topic outcome"):
        _touch_user(db, user_id)
        topic = db.query(EffectiveTopic).filter(
            EffectiveTopic.user_id == user_id,
            EffectiveTopic.topic_keywords == key
        ).first()

        if topic:
            topic.total_count += 1
            topic.success_count += 1 if was_successful else 0
            topic.success_rate = topic.success_count / topic.total_count
            # 실패한 경우 last_success_at은 그대로 둔다
            if was_successful:
                topic.last_success_at = utcnow()
        else:
            topic = EffectiveTopic(
                user_id=user_id,
                topic_keywords=key,
                success_count=1 if was_successful else 0,
                total_count=1,
                success_rate=1.0 if was_successful else 0.0,
                last_success_at=utcnow() if was_successful else None
            )
            db.add(topic)

    db.refresh(topic)
    logger.debug(f"Topic {key} for user {user_id}: {topic.success_count}/{topic.total_count}")
    return topic


def get_top_effective_topics(db: Session, user_id: str, limit: int = 10) -> List[EffectiveTopic]:
    """관측 2회 이상인 주제를 성공률 높은 순으로 조회"""
    with storage_operation(db, "get effective topics"):
        return db.query(EffectiveTopic).filter(
            EffectiveTopic.user_id == user_id,
            EffectiveTopic.total_count >= MIN_TOTAL_FOR_RANKING
        ).order_by(
            EffectiveTopic.success_rate.desc(),
            EffectiveTopic.last_success_at.is_(None),
            EffectiveTopic.last_success_at.desc()
        ).limit(limit).all()


def get_effectiveness(db: Session, user_id: str, keywords: Iterable[str]) -> float:
    """키워드 조합의 예상 효과성. 관측이 적으면 0.5 쪽으로 수축한다"""
    topic = get_topic(db, user_id, keywords)

    if topic is None:
        return NEUTRAL_PRIOR

    if topic.total_count < MIN_TOTAL_FOR_CONFIDENCE:
        return (topic.success_rate + NEUTRAL_PRIOR) / 2

    return topic.success_rate
