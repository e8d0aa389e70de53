"""
모델 임포트
"""
# Base를 먼저 임포트
from eume.database import Base

# 그 다음 모델 임포트
from eume.models.conversation import ConversationUser, ConversationMessage, PhotoSession
from eume.models.topic import EffectiveTopic
from eume.models.trauma import TraumaInfo
from eume.models.user import AuthUser
from eume.models.patient import Patient
from eume.models.report import CognitiveReport

__all__ = ["Base", "ConversationUser", "ConversationMessage", "PhotoSession",
           "EffectiveTopic", "TraumaInfo", "AuthUser", "Patient", "CognitiveReport"]
