"""
대화 기록 기반 인지 평가 (K-MMSE/CDR/NPI 참고 휴리스틱)

임상 도구가 아니라 짧은 대화문에 대한 키워드/길이 규칙의 모음이다.
같은 입력에는 항상 같은 결과를 낸다.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

# CDR 라벨
CDR_0 = "CDR 0"
CDR_05 = "CDR 0.5"
CDR_1 = "CDR 1"
CDR_2 = "CDR 2"
CDR_3 = "CDR 3"

# (하한, 라벨) - 위에서부터 먼저 만족하는 라벨
CDR_THRESHOLDS: Tuple[Tuple[float, str], ...] = (
    (4.5, CDR_0),
    (3.5, CDR_05),
    (2.5, CDR_1),
    (1.5, CDR_2),
)

MIN_SCORE = 1
MAX_SCORE = 5
BASE_SCORE = 3

MEMORY_CONFUSION_KEYWORDS = ("기억", "모르겠", "잊었", "헷갈")
RISK_CONFUSION_KEYWORDS = ("모르겠", "잊었")
TIME_KEYWORDS = ("오늘", "어제", "내일", "지금", "요즘")
PLACE_KEYWORDS = ("집", "병원", "여기", "거기")
COMPLEX_CONNECTIVES = ("그런데", "하지만", "그래서")

SYMPTOM_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("불안 증상", ("불안", "걱정", "무서워", "떨려")),
    ("우울 증상", ("슬퍼", "우울", "힘들어", "포기")),
    ("무관심 증상", ("귀찮아", "관심없어", "상관없어")),
)
NO_SYMPTOMS = "특이사항 없음"

RISK_LANGUAGE_DECLINE = "언어 기능 저하"
RISK_MEMORY_DECLINE = "기억력 저하"
RISK_LOW_PARTICIPATION = "대화 참여도 저하"
NO_RISK_FACTORS = "특이 위험요인 없음"


@dataclass(frozen=True)
class CDRLevel:
    label: str
    title: str
    criteria: Dict[str, str]
    characteristics: Tuple[str, ...]
    recommendations: Tuple[str, ...]


CDR_KNOWLEDGE: Tuple[CDRLevel, ...] = (
    CDRLevel(
        label=CDR_0,
        title="정상",
        criteria={
            "memory": "기억장애가 전혀 없거나 경미한 건망증이 때때로 나타남",
            "orientation": "정상",
            "judgment": "일상생활의 문제를 잘 해결하고 사업이나 재정문제도 잘 처리함",
            "community_affairs": "직장생활, 물건사기, 자원봉사, 사회적 활동 등에서 보통수준의 독립적 기능이 가능함",
            "home_hobbies": "집안생활, 취미생활, 지적인 관심이 잘 유지되어 있음",
            "personal_care": "정상",
        },
        characteristics=("인지기능이 정상 범위", "독립적 생활 가능", "사회적 기능 유지"),
        recommendations=("현재 상태를 유지하기 위한 지적 활동 지속", "정기적인 건강 검진", "사회적 활동 참여 격려"),
    ),
    CDRLevel(
        label=CDR_05,
        title="매우 경도치매",
        criteria={
            "memory": "경하지만 지속적인 건망증; 사건의 부분적인 회상만 가능",
            "orientation": "시간에 대한 경미한 장애가 있는 것 외에는 정상",
            "judgment": "문제해결능력, 유사성, 상이성 해석에 대한 경미한 장애",
            "community_affairs": "이와 같은 활동에 있어서의 장애가 의심되거나 약간의 장애가 있음",
            "home_hobbies": "집안생활, 취미생활, 지적인 관심이 다소 손상되어 있음",
            "personal_care": "정상",
        },
        characteristics=("경도인지장애 수준", "일상생활에 미미한 영향", "조기 개입 중요"),
        recommendations=("인지 자극 프로그램 참여", "규칙적인 운동과 사회 활동", "전문의 정기 상담", "보호자 교육 필요"),
    ),
    CDRLevel(
        label=CDR_1,
        title="경도치매",
        criteria={
            "memory": "중등도의 기억장애; 최근 것에 대한 기억장애가 더 심함; 일상생활에 지장이 있음",
            "orientation": "시간에 대해 중등도의 장애가 있음; 실생활에서 길 찾기에 장애가 있을 수 있음",
            "judgment": "문제해결능력, 유사성, 상이성 해석에 대한 중등도의 장애",
            "community_affairs": "일부 활동에 참여하나 사실상 독립적인 수행이 불가능함",
            "home_hobbies": "집안생활에 경하지만 분명한 장애가 있고, 어려운 집안일은 포기된 상태임",
            "personal_care": "가끔 개인위생에 대한 권고가 필요함",
        },
        characteristics=("명확한 인지 저하", "일상생활 수행에 어려움", "감독과 지원 필요"),
        recommendations=("일상생활 지원 체계 구축", "안전 관리 강화", "정기적인 인지 평가", "가족 돌봄 교육"),
    ),
    CDRLevel(
        label=CDR_2,
        title="중등도치매",
        criteria={
            "memory": "심한 기억장애; 과거에 반복적으로 많이 학습한 것만 기억; 새로운 정보는 금방 잊음",
            "orientation": "시간에 대한 지남력은 상실되어 있고 장소에 대한 지남력 역시 자주 손상됨",
            "judgment": "문제해결, 유사성, 상이성 해석에 심한 장애; 사회생활에서의 판단력이 대부분 손상됨",
            "community_affairs": "집 밖에서 독립적인 활동을 할 수 없음",
            "home_hobbies": "아주 간단한 집안 일만 할 수 있고, 관심이나 흥미가 매우 제한됨",
            "personal_care": "옷 입기, 개인위생, 개인 소지품의 유지에 도움이 필요함",
        },
        characteristics=("상당한 인지기능 저하", "전면적인 돌봄 필요", "행동심리증상 동반 가능"),
        recommendations=("24시간 돌봄 체계", "안전사고 예방 조치", "행동심리증상 관리", "보호자 스트레스 관리"),
    ),
    CDRLevel(
        label=CDR_3,
        title="심도치매",
        criteria={
            "memory": "심한 기억장애; 부분적이고 단편적인 사실만 보존됨",
            "orientation": "사람에 대한 지남력만 유지되고 있음",
            "judgment": "판단이나 문제해결이 불가능함",
            "community_affairs": "집 밖에서 독립적인 활동을 할 수 없고 외부에서는 정상적인 기능을 할 수 없어 보임",
            "home_hobbies": "집안에서 의미있는 기능 수행이 없음",
            "personal_care": "개인위생과 몸치장의 유지에 많은 도움이 필요하며, 자주 대소변의 실금이 있음",
        },
        characteristics=("중증 인지기능 장애", "완전한 의존 상태", "의료적 돌봄 필수"),
        recommendations=("전문 의료진 상주", "욕창 예방 및 관리", "영양 관리", "감염 예방"),
    ),
)

# CDR 라벨별 해석 문장 (정확 일치로 조회)
CDR_INTERPRETATIONS: Dict[str, str] = {
    CDR_0: "정상적인 인지기능을 유지하고 있는 것으로 판단됩니다.",
    CDR_05: "경미한 인지저하가 관찰되어 지속적인 관찰과 조기 개입이 필요합니다.",
    CDR_1: "명확한 인지장애가 있어 일상생활 지원이 필요한 상태입니다.",
}
DEFAULT_INTERPRETATION = "상당한 인지장애가 있어 전문적인 돌봄이 필요한 상태입니다."


@dataclass(frozen=True)
class CognitiveAssessment:
    memory_score: float
    orientation_score: float
    language_score: float
    average_score: float
    cdr_label: str
    behavioral_symptoms: Tuple[str, ...]
    risk_factors: Tuple[str, ...]
    clinical_insight: str
    recommendations: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def cdr_title(self) -> str:
        return f"{self.cdr_label} ({cdr_level(self.cdr_label).title})"


def clamp(score: float) -> float:
    return max(MIN_SCORE, min(MAX_SCORE, score))


def cdr_level(label: str) -> CDRLevel:
    for level in CDR_KNOWLEDGE:
        if level.label == label:
            return level
    raise KeyError(label)


def cdr_label_for(average_score: float) -> str:
    """평균 점수 -> CDR 라벨 (하한 포함)"""
    for lower_bound, label in CDR_THRESHOLDS:
        if average_score >= lower_bound:
            return label
    return CDR_3


def _user_messages(messages: Sequence) -> List:
    return [m for m in messages if m.role == "user"]


def _mean_length(user_messages: Sequence) -> float:
    if not user_messages:
        return 0.0
    return sum(len(m.content) for m in user_messages) / len(user_messages)


def _mean_word_count(user_messages: Sequence) -> float:
    if not user_messages:
        return 0.0
    return sum(len(m.content.split()) for m in user_messages) / len(user_messages)


def _contains_any(text: str, keywords: Sequence[str]) -> bool:
    return any(keyword in text for keyword in keywords)


class CognitiveScoreEstimator:
    """대화 기록에서 하위 점수와 CDR 라벨을 추정"""

    def assess_memory(self, user_messages: Sequence) -> float:
        score = BASE_SCORE

        avg_length = _mean_length(user_messages)
        if avg_length > 20:
            score += 1
        if avg_length < 5:
            score -= 1

        confused = sum(1 for m in user_messages if _contains_any(m.content, MEMORY_CONFUSION_KEYWORDS))
        if confused > len(user_messages) / 2:
            score -= 1

        return clamp(score)

    def assess_orientation(self, user_messages: Sequence) -> float:
        score = BASE_SCORE

        if any(_contains_any(m.content, TIME_KEYWORDS) for m in user_messages):
            score += 0.5
        if any(_contains_any(m.content, PLACE_KEYWORDS) for m in user_messages):
            score += 0.5

        return clamp(score)

    def assess_language(self, user_messages: Sequence) -> float:
        score = BASE_SCORE

        avg_words = _mean_word_count(user_messages)
        if avg_words > 10:
            score += 1
        elif avg_words < 3:
            score -= 1

        if any(_contains_any(m.content, COMPLEX_CONNECTIVES) for m in user_messages):
            score += 0.5

        return clamp(score)

    def classify(self, memory_score: float, orientation_score: float, language_score: float) -> str:
        average = (memory_score + orientation_score + language_score) / 3
        return cdr_label_for(average)

    def estimate_cdr_level(self, messages: Sequence) -> str:
        user_messages = _user_messages(messages)
        return self.classify(
            self.assess_memory(user_messages),
            self.assess_orientation(user_messages),
            self.assess_language(user_messages),
        )

    def analyze_behavioral_symptoms(self, messages: Sequence) -> List[str]:
        """NPI 참고 행동심리증상 (복수 가능)"""
        user_messages = _user_messages(messages)
        symptoms = [
            label for label, keywords in SYMPTOM_KEYWORDS
            if any(_contains_any(m.content, keywords) for m in user_messages)
        ]
        return symptoms or [NO_SYMPTOMS]

    def identify_risk_factors(self, messages: Sequence) -> List[str]:
        user_messages = _user_messages(messages)
        risk_factors = []

        if _mean_length(user_messages) < 5:
            risk_factors.append(RISK_LANGUAGE_DECLINE)

        confused = sum(1 for m in user_messages if _contains_any(m.content, RISK_CONFUSION_KEYWORDS))
        if confused > len(user_messages) / 3:
            risk_factors.append(RISK_MEMORY_DECLINE)

        if len(user_messages) < len(messages) / 3:
            risk_factors.append(RISK_LOW_PARTICIPATION)

        return risk_factors or [NO_RISK_FACTORS]

    def generate_clinical_insight(self, messages: Sequence, cdr_label: str) -> str:
        avg_words = _mean_word_count(_user_messages(messages))

        insight = f"환자는 {len(messages)}회의 대화 교환을 통해 "

        if avg_words > 10:
            insight += "비교적 풍부한 언어 표현을 보였습니다. "
        elif avg_words < 3:
            insight += "제한적인 언어 표현을 보였습니다. "
        else:
            insight += "적절한 수준의 언어 표현을 보였습니다. "

        insight += f"CDR 평가 기준에 따르면 {cdr_label} 수준으로 평가되며, "
        insight += CDR_INTERPRETATIONS.get(cdr_label, DEFAULT_INTERPRETATION)

        return insight

    def recommendations_for(self, cdr_label: str) -> List[str]:
        try:
            return list(cdr_level(cdr_label).recommendations)
        except KeyError:
            return []

    def estimate(self, messages: Sequence) -> CognitiveAssessment:
        """전체 평가를 매번 새로 계산"""
        user_messages = _user_messages(messages)

        memory = self.assess_memory(user_messages)
        orientation = self.assess_orientation(user_messages)
        language = self.assess_language(user_messages)
        average = (memory + orientation + language) / 3
        label = cdr_label_for(average)

        return CognitiveAssessment(
            memory_score=memory,
            orientation_score=orientation,
            language_score=language,
            average_score=average,
            cdr_label=label,
            behavioral_symptoms=tuple(self.analyze_behavioral_symptoms(messages)),
            risk_factors=tuple(self.identify_risk_factors(messages)),
            clinical_insight=self.generate_clinical_insight(messages, label),
            recommendations=tuple(self.recommendations_for(label)),
        )
