"""
치매 돌봄 대화 가이드 검색

사용자 발화에 포함된 키워드로 정적 가이드 테이블을 조회해
LLM 시스템 프롬프트에 덧붙일 가이드 문자열을 만든다.
의미 검색은 하지 않고 부분 문자열 포함 여부만 본다.
"""
import json
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Literal, Mapping, Optional, Tuple

DATA_DIR = Path(__file__).resolve().parent / "data"
GUIDE_FILE = DATA_DIR / "dementia_care_guide.json"

MAX_CONTEXTS = 3

Stage = Literal["initial", "conversation", "reminiscence", "closure"]


@dataclass(frozen=True)
class GuideContext:
    section: str
    content: Tuple[str, ...]
    priority: int


def load_guide_data(path: Path = GUIDE_FILE) -> Dict:
    """가이드 JSON 로드"""
    with path.open(encoding="utf-8") as f:
        return json.load(f)


def build_keyword_table(guide: Dict) -> Mapping[str, Tuple[GuideContext, ...]]:
    """트리거 키워드 -> 가이드 목록 테이블 (삽입 순서가 조회 순서)"""
    initial_questions = guide["conversationPreparation"]["initialQuestions"]
    encouraging = guide["responsePatterns"]["encouragingPhrases"]
    clarification = guide["responsePatterns"]["clarificationPhrases"]
    emotional_support = guide["conversationGuidelines"]["emotionalSupport"]["encouragement"]

    def ctx(section: str, content: List[str], priority: int = 1) -> GuideContext:
        return GuideContext(section=section, content=tuple(content), priority=priority)

    table = {
        # 인사/현재 인식
        "안녕": (ctx("기본 인사", initial_questions[:3]), ctx("격려 표현", encouraging[:3], 2)),
        "기분": (ctx("감정 확인", ["기분이 어떠신가요?", "오늘 컨디션은 어떠세요?"]), ctx("격려", encouraging[:3], 2)),
        "날씨": (ctx("현재 인식", [q for q in initial_questions if "날씨" in q]),),
        "시간": (ctx("지남력 훈련", [q for q in initial_questions if "시간" in q or "몇" in q]),),
        # 회상
        "어린": (ctx("회상 주제", ["어린 시절 이야기를 들려주세요", "어릴 때 가장 기억에 남는 일이 있나요?"]),),
        "고향": (ctx("회상 주제", ["고향이 어디신가요?", "고향에서의 추억이 있으시나요?"]),),
        "가족": (ctx("회상 주제", ["가족과의 좋은 추억이 있으신가요?", "가족 이야기를 들려주세요"]),),
        "음식": (ctx("회상 주제", ["좋아하시는 음식이 있나요?", "옛날에 자주 드셨던 음식이 있으신가요?"]),),
        "노래": (ctx("회상 주제", ["좋아하시는 노래가 있나요?", "옛날에 즐겨 들으셨던 노래가 있으신가요?"]),),
        # 감정 반응
        "슬프": (ctx("부정적 감정 대응", emotional_support),),
        "힘들": (ctx("부정적 감정 대응", emotional_support),),
        "좋": (ctx("긍정적 반응", encouraging),),
        # 명료화
        "모르겠": (ctx("명료화", clarification),),
        "다시": (ctx("명료화", clarification),),
    }
    return MappingProxyType(table)


def _bullets(items) -> str:
    return "\n".join(f"- {item}" for item in items)


class GuidanceRetriever:
    """정적 가이드 테이블 기반 프롬프트 보강기"""

    def __init__(self, guide: Optional[Dict] = None):
        guide = guide if guide is not None else load_guide_data()
        self.keyword_table = build_keyword_table(guide)
        self.conversation_principles = tuple(guide["conversationGuidelines"]["basicAttitude"])
        self.encouraging_phrases = tuple(guide["responsePatterns"]["encouragingPhrases"])
        self.initial_questions = tuple(guide["conversationPreparation"]["initialQuestions"])
        self.reminiscence_topics = tuple(guide["reminiscenceProgram"]["topics"])
        self.transition_phrases = tuple(guide["responsePatterns"]["transitionPhrases"])

    def match_contexts(self, user_input: str) -> List[GuideContext]:
        """입력에 포함된 모든 트리거의 가이드를 모아 우선순위 순으로 최대 3개"""
        input_lower = user_input.lower()
        contexts: List[GuideContext] = []

        for keyword, guide_contexts in self.keyword_table.items():
            if keyword in input_lower:
                contexts.extend(guide_contexts)

        return sorted(contexts, key=lambda c: c.priority)[:MAX_CONTEXTS]

    def retrieve_relevant_guidance(self, user_input: str) -> str:
        contexts = self.match_contexts(user_input)

        guidance = "대화 시 기본 원칙:\n"
        guidance += _bullets(self.conversation_principles[:3])
        guidance += "\n\n"

        if contexts:
            guidance += "상황별 가이드:\n"
            for context in contexts:
                guidance += f"{context.section}:\n"
                guidance += _bullets(context.content)
                guidance += "\n"

        guidance += "격려 표현 예시:\n"
        guidance += _bullets(self.encouraging_phrases[:3])

        return guidance

    def stage_guidance(self, stage: Stage) -> str:
        """대화 단계별 고정 가이드"""
        if stage == "initial":
            return (
                "초기 대화 가이드:\n"
                f"{_bullets(self.initial_questions[:3])}\n\n"
                "기본 태도:\n"
                f"{_bullets(self.conversation_principles[:3])}"
            )

        if stage == "reminiscence":
            return (
                "회상 활동 가이드:\n"
                "추천 주제:\n"
                f"{_bullets(self.reminiscence_topics[:5])}\n\n"
                "진행 방법:\n"
                "- 환자가 자발적으로 이야기하도록 유도\n"
                "- 경청과 반복적 질문으로 대화 확장\n"
                "- 긍정적인 기억 위주로 대화 진행"
            )

        if stage == "closure":
            return (
                "마무리 가이드:\n"
                "- 오늘의 이야기를 간단히 정리\n"
                "- 활동 소감을 나누며 끝맺음\n"
                "- 긍정적인 마무리 인사\n\n"
                "마무리 표현:\n"
                f"{_bullets(self.transition_phrases[:2])}"
            )

        return (
            "일반 대화 가이드:\n"
            f"{_bullets(self.conversation_principles[:3])}\n\n"
            "격려 표현:\n"
            f"{_bullets(self.encouraging_phrases[:3])}"
        )
