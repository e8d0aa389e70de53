"""
트라우마 정보 모델 정의
"""
from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text

from eume.database import Base, utcnow


class TraumaInfo(Base):
    """사용자별 회피 주제 테이블 (사용자당 최대 1건)"""
    __tablename__ = "trauma_info"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.user_id"), unique=True, index=True, nullable=False)

    trauma_keywords = Column(JSON, nullable=False)  # ["키워드1", "키워드2"]
    detailed_description = Column(Text, default="")

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
