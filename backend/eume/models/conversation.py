"""
대화 기록 관련 모델 정의
"""
from sqlalchemy import BigInteger, Boolean, Column, DateTime, ForeignKey, Integer, String, Text

from eume.database import Base, utcnow


class ConversationUser(Base):
    """대화 사용자 테이블 (단말에서 생성한 불투명 ID)"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, unique=True, index=True, nullable=False)

    created_at = Column(DateTime, default=utcnow)
    last_interaction_at = Column(DateTime, default=utcnow)


class ConversationMessage(Base):
    """대화 메시지 테이블"""
    __tablename__ = "conversation_messages"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.user_id"), index=True, nullable=False)

    role = Column(String, nullable=False)  # user, assistant, system
    content = Column(Text, nullable=False)
    timestamp = Column(BigInteger, index=True, nullable=False)  # epoch millis

    created_at = Column(DateTime, default=utcnow)


class PhotoSession(Base):
    """사진 기반 회상 세션 테이블"""
    __tablename__ = "photo_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.user_id"), index=True, nullable=False)

    image_analysis = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)
    start_time = Column(BigInteger, nullable=False)  # epoch millis

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
