"""
인지 평가 리포트 모델 정의
"""
from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text

from eume.database import Base, utcnow


class CognitiveReport(Base):
    """세션 종료 시 생성되는 인지 평가 리포트 테이블"""
    __tablename__ = "cognitive_reports"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.user_id"), index=True, nullable=False)

    message_count = Column(Integer, default=0)

    # K-MMSE 기반 하위 점수 (1-5)
    memory_score = Column(Float, nullable=False)
    orientation_score = Column(Float, nullable=False)
    language_score = Column(Float, nullable=False)
    cdr_label = Column(String, nullable=False)  # CDR 0, CDR 0.5, ...

    behavioral_symptoms = Column(JSON)  # NPI 기반 행동심리증상
    risk_factors = Column(JSON)
    recommendations = Column(JSON)

    clinical_insight = Column(Text)
    summary = Column(Text)  # LLM 서술 요약 (실패 시 clinical_insight)

    created_at = Column(DateTime, default=utcnow)
