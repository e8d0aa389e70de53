"""
보호자 계정 모델 정의
"""
from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from eume.database import Base, utcnow


class AuthUser(Base):
    """보호자(케어기버) 계정 테이블"""
    __tablename__ = "auth_users"

    id = Column(String, primary_key=True, index=True)  # uuid4
    username = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    role = Column(String, default="caregiver")
    hashed_password = Column(String, nullable=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # 관계
    patients = relationship("Patient", back_populates="owner", cascade="all, delete-orphan")
