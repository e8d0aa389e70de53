"""
환자 프로필 모델 정의
"""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from eume.database import Base, utcnow


class Patient(Base):
    """보호자가 등록한 환자 정보 테이블"""
    __tablename__ = "patients"

    id = Column(String, primary_key=True, index=True)  # uuid4
    owner_id = Column(String, ForeignKey("auth_users.id"), index=True, nullable=False)

    name = Column(String, nullable=False)
    age = Column(Integer, nullable=False)
    gender = Column(String, nullable=False)  # MALE, FEMALE
    dementia_level = Column(String, default="")
    trigger_elements = Column(Text, default="")  # 피해야 할 자극 요소
    relationship_to_owner = Column("relationship", String, default="")
    memo = Column(Text, default="")

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    owner = relationship("AuthUser", back_populates="patients")
