"""
개인화 질문 시스템

과거 대화에서 효과적이었던 주제와 긍정 키워드를 모아
다음 질문을 만들고, 질문의 효과를 다시 주제 통계에 기록한다.
"""
import logging
from collections import Counter
from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, List

from sqlalchemy.orm import Session

from eume.ai_service import AIService
from eume.crud import conversation as crud_conversation
from eume.crud import topic as crud_topic
from eume.errors import UpstreamServiceError

logger = logging.getLogger(__name__)

# 회상 대화에서 자주 긍정 반응을 끌어내는 주제 키워드
POSITIVE_TOPIC_KEYWORDS = (
    "시골", "어린시절", "가족", "엄마", "아빠", "형제", "자매",
    "학교", "친구", "선생님", "고향", "집", "마당", "정원",
    "봄", "여름", "가을", "겨울", "꽃", "나무", "바다", "산",
    "음식", "밥", "국", "김치", "떡", "과자", "차", "커피",
    "일", "직장", "회사", "동료", "취미", "운동", "노래",
    "결혼", "신혼", "아이", "손자", "손녀", "명절", "생일",
    "여행", "나들이", "시장", "병원", "교회", "절", "공원",
)

DEFAULT_QUESTION = "오늘 기분은 어떠세요?"
MIN_MESSAGES_FOR_PATTERN_ANALYSIS = 6
HIGH_EFFECTIVENESS_RATE = 0.6


@dataclass
class PersonalizedQuestion:
    question: str
    keywords: List[str] = field(default_factory=list)
    expected_effectiveness: float = 0.5
    reasoning: str = ""


def extract_topic_keywords(text: str, limit: int = 3) -> List[str]:
    """텍스트에 포함된 주제 키워드 (목록 순서, 최대 limit개)"""
    return [kw for kw in POSITIVE_TOPIC_KEYWORDS if kw in text][:limit]


class PersonalizedQuestionSystem:
    def __init__(self, db: Session, ai: AIService):
        self.db = db
        self.ai = ai

    def analyze_positive_keywords(self, user_id: str) -> List[str]:
        """최근 사용자 메시지에서 주제 키워드 빈도 상위 10개"""
        messages = crud_conversation.get_recent_messages(self.db, user_id, limit=50)
        counts: Counter = Counter()

        for message in messages:
            if message.role != "user":
                continue
            for keyword in POSITIVE_TOPIC_KEYWORDS:
                if keyword in message.content:
                    counts[keyword] += 1

        return [keyword for keyword, _ in counts.most_common(10)]

    async def analyze_conversation_patterns(self, user_id: str) -> List[str]:
        """LLM으로 긍정 반응 패턴 분석. 데이터가 부족하거나 실패하면 빈 리스트"""
        messages = crud_conversation.get_recent_messages(self.db, user_id, limit=30)

        if len(messages) < MIN_MESSAGES_FOR_PATTERN_ANALYSIS:
            return []

        conversation_text = "\n".join(
            f"{idx + 1}. {'환자' if m.role == 'user' else '이음이'}: {m.content}"
            for idx, m in enumerate(messages)
        )

        try:
            return await self.ai.extract_positive_keywords(conversation_text)
        except UpstreamServiceError as e:
            logger.warning(f"Keyword pattern analysis failed for user {user_id}: {e}")
            return []

    def calculate_expected_effectiveness(self, user_id: str, keywords: List[str]) -> float:
        """키워드별 효과성 평균 + 키워드 수 보너스 (최대 0.1)"""
        if not keywords:
            return 0.5

        effectivenesses = [crud_topic.get_effectiveness(self.db, user_id, [kw]) for kw in keywords]
        avg_effectiveness = sum(effectivenesses) / len(effectivenesses)
        keyword_bonus = min(len(keywords) * 0.02, 0.1)

        return min(avg_effectiveness + keyword_bonus, 1.0)

    def _question_prompt(self, keywords: List[str], topics, current_context: str) -> str:
        topic_lines = "\n".join(
            f"- {' + '.join(t.keywords)}: 성공률 {round(t.success_rate * 100)}%" for t in topics
        )
        return f"""치매 환자를 위한 개인화된 질문을 생성해주세요.

=== 환자 정보 ===
- 과거 긍정적 반응 키워드: {', '.join(keywords)}
- 현재 대화 맥락: {current_context}

=== 효과적인 주제 패턴 ===
{topic_lines}

=== 질문 생성 규칙 ===
1. 과거 긍정적 반응을 얻은 키워드를 2-3개 조합
2. 구체적이고 감정적인 기억을 유도
3. 15단어 이내로 간단하게
4. "~하신 적 있나요?" "~은 어떠셨나요?" 형태 사용

JSON 형식으로 응답:
{{
  "question": "생성된 질문",
  "keywords": ["사용된", "키워드들"],
  "reasoning": "이 질문을 선택한 이유"
}}"""

    async def generate_personalized_question(self, user_id: str, current_context: str = "") -> PersonalizedQuestion:
        topics = crud_topic.get_top_effective_topics(self.db, user_id, limit=5)
        recent_keywords = self.analyze_positive_keywords(user_id)
        ai_keywords = await self.analyze_conversation_patterns(user_id)

        all_keywords = [kw for t in topics for kw in t.keywords] + recent_keywords + ai_keywords
        unique_keywords = list(dict.fromkeys(all_keywords))[:8]

        try:
            result = await self.ai.generate_personalized_question(
                self._question_prompt(unique_keywords, topics, current_context)
            )
        except UpstreamServiceError as e:
            logger.warning(f"Personalized question generation failed for user {user_id}: {e}")
            result = {}

        if not result.get("question"):
            return PersonalizedQuestion(
                question=f"{unique_keywords[0]}에 대해 기억나는 것이 있으신가요?" if unique_keywords else DEFAULT_QUESTION,
                keywords=unique_keywords[:2],
                expected_effectiveness=0.5,
                reasoning="기본 질문 사용",
            )

        keywords = [str(kw) for kw in result.get("keywords") or []]
        return PersonalizedQuestion(
            question=str(result["question"]),
            keywords=keywords,
            expected_effectiveness=self.calculate_expected_effectiveness(user_id, keywords),
            reasoning=str(result.get("reasoning") or "개인화된 질문 생성"),
        )

    def record_question_effectiveness(self, user_id: str, keywords: List[str], was_effective: bool) -> None:
        """키워드 전체 조합과 모든 2개 조합의 결과를 기록"""
        if not keywords:
            return

        crud_topic.record_outcome(self.db, user_id, keywords, was_effective)

        # 키워드가 2개뿐이면 전체 조합과 같으므로 중복 기록하지 않는다
        if len(keywords) > 2:
            for pair in combinations(keywords, 2):
                crud_topic.record_outcome(self.db, user_id, list(pair), was_effective)

    def get_learning_status(self, user_id: str) -> Dict:
        topics = crud_topic.get_top_effective_topics(self.db, user_id, limit=50)
        recent_keywords = self.analyze_positive_keywords(user_id)

        total = len(topics)
        return {
            "total_topics": total,
            "effective_topics": sum(1 for t in topics if t.success_rate > HIGH_EFFECTIVENESS_RATE),
            "average_success_rate": sum(t.success_rate for t in topics) / total if total else 0.0,
            "top_keywords": recent_keywords[:5],
        }
