"""
효과적인 대화 주제 모델 정의
"""
import json

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint

from eume.database import Base, utcnow


class EffectiveTopic(Base):
    """키워드 조합별 대화 성공률 테이블"""
    __tablename__ = "effective_topics"
    __table_args__ = (UniqueConstraint("user_id", "topic_keywords", name="uq_effective_topic_key"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.user_id"), index=True, nullable=False)

    # 정렬된 키워드 JSON 배열 문자열 (정확 일치 비교용)
    topic_keywords = Column(Text, nullable=False)

    success_count = Column(Integer, default=0, nullable=False)
    total_count = Column(Integer, default=0, nullable=False)
    success_rate = Column(Float, default=0.0, nullable=False)
    last_success_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def keywords(self) -> list:
        return json.loads(self.topic_keywords)
