"""
대화 턴/세션 종료 처리 코디네이터

한 요청 안에서 대화 저장소, 가이드 검색, LLM 호출, 트라우마 필터,
주제 효과 기록, 인지 평가를 순서대로 호출한다.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.orm import Session

from eume.ai_service import AIService, COMPANION_SYSTEM_PROMPT, CORE_PRINCIPLES
from eume.config import PROMPT_HISTORY_LIMIT
from eume.crud import conversation as crud_conversation
from eume.crud import report as crud_report
from eume.crud import topic as crud_topic
from eume.crud import trauma as crud_trauma
from eume.database import now_millis
from eume.errors import NotFoundError, StorageError, UpstreamServiceError, ValidationError
from eume.guidance import GuidanceRetriever, Stage
from eume.models.report import CognitiveReport
from eume.personalization import extract_topic_keywords
from eume.report_analysis import CognitiveAssessment, CognitiveScoreEstimator

logger = logging.getLogger(__name__)

REMINISCENCE_CUES = ("기억", "옛날", "어린")
CLOSURE_CUES = ("고마워", "끝", "안녕")

POSITIVE_RESPONSE_KEYWORDS = ("좋", "행복", "기뻐", "기쁘", "재미", "즐거", "고마워", "감사", "웃", "그립", "맛있", "신나")
NEGATIVE_RESPONSE_KEYWORDS = ("싫", "슬퍼", "힘들", "몰라", "모르겠", "그만", "귀찮", "짜증", "무서", "아파")
LONG_RESPONSE_CHARS = 15

DEFAULT_IMAGE_ANALYSIS = "사진을 분석했습니다."

FALLBACK_REPLIES = {
    "initial": "안녕하세요! 만나서 반가워요. 오늘 기분은 어떠세요?",
    "reminiscence": "정말 소중한 추억이네요. 그때 이야기를 조금 더 들려주시겠어요?",
    "closure": "오늘 이야기 나눠 주셔서 정말 고마워요. 편안한 하루 보내세요.",
    "conversation": "그러셨군요. 말씀해 주셔서 고마워요. 조금 더 이야기해 주시겠어요?",
}
NEGATIVE_FALLBACK_REPLY = "많이 힘드셨겠어요. 제가 곁에 있을게요. 천천히 이야기해 주셔도 괜찮아요."
TRAUMA_REDIRECT_REPLY = "그 이야기는 잠시 쉬어 갈까요? 오늘 좋았던 일이 있으셨는지 궁금해요."


@dataclass
class TurnResult:
    user_text: str
    response_text: str
    stage: str
    used_fallback: bool = False
    trauma_flagged: bool = False
    matched_trauma_keywords: List[str] = field(default_factory=list)


@dataclass
class SessionReport:
    report: CognitiveReport
    assessment: CognitiveAssessment
    summary: str
    used_fallback: bool = False


def determine_stage(text: str, has_history: bool, photo_active: bool) -> Stage:
    if photo_active:
        return "reminiscence"
    if not has_history:
        return "initial"
    if any(cue in text for cue in REMINISCENCE_CUES):
        return "reminiscence"
    if any(cue in text for cue in CLOSURE_CUES):
        return "closure"
    return "conversation"


def judge_response(text: str) -> bool:
    """다음 사용자 발화로 직전 주제가 효과적이었는지 판단"""
    positive = any(kw in text for kw in POSITIVE_RESPONSE_KEYWORDS)
    negative = any(kw in text for kw in NEGATIVE_RESPONSE_KEYWORDS)
    if positive:
        return True
    if negative:
        return False
    return len(text.strip()) >= LONG_RESPONSE_CHARS


def fallback_reply(text: str, stage: str) -> str:
    if stage != "closure" and any(kw in text for kw in NEGATIVE_RESPONSE_KEYWORDS):
        return NEGATIVE_FALLBACK_REPLY
    return FALLBACK_REPLIES.get(stage, FALLBACK_REPLIES["conversation"])


class SessionOrchestrator:
    def __init__(
        self,
        db: Session,
        ai: AIService,
        guidance: GuidanceRetriever,
        estimator: CognitiveScoreEstimator
    ):
        self.db = db
        self.ai = ai
        self.guidance = guidance
        self.estimator = estimator

    def _record_previous_topic(self, user_id: str, messages, text: str) -> None:
        """직전 사용자 발화의 주제 효과를 기록. 실패해도 턴은 계속한다"""
        previous_user = next((m for m in reversed(messages) if m.role == "user"), None)
        if previous_user is None:
            return

        keywords = extract_topic_keywords(previous_user.content)
        if not keywords:
            return

        try:
            crud_topic.record_outcome(self.db, user_id, keywords, judge_response(text))
        except StorageError as e:
            logger.warning(f"Topic outcome not recorded for user {user_id}: {e}")

    def build_system_prompt(
        self,
        user_id: str,
        text: str,
        stage: Stage,
        image_analysis: Optional[str],
        trauma_keywords: List[str]
    ) -> str:
        prompt = f"""{COMPANION_SYSTEM_PROMPT}

=== 대화 가이드 (Conversation Guidelines) ===
{self.guidance.retrieve_relevant_guidance(text)}

=== 현재 단계 가이드 (Stage-specific Guidelines) ===
{self.guidance.stage_guidance(stage)}"""

        if image_analysis:
            prompt += f"""

=== 사진 기반 회상 치료 (Photo-based Reminiscence Therapy) ===
현재 사용자가 업로드한 사진을 보며 회상 치료를 진행하고 있습니다.

사진 분석 결과:
{image_analysis}

사진 기반 대화 가이드라인:
- 사진 속 세부사항을 언급하며 자연스럽게 질문하기
- 사진과 관련된 개인적 경험이나 추억 유도하기
- 긍정적인 기억과 감정에 집중하기"""

        topics = crud_topic.get_top_effective_topics(self.db, user_id, limit=3)
        if topics:
            prompt += "\n\n=== 효과적이었던 주제 ===\n"
            prompt += "\n".join(f"- {', '.join(t.keywords)}" for t in topics)

        if trauma_keywords:
            prompt += f"""

=== 피해야 할 주제 (Topics to Avoid) ===
사용자가 다음 주제를 언급했습니다: {', '.join(trauma_keywords)}
이 주제에 대해 질문하거나 자세히 묻지 말고, 공감한 뒤 편안한 다른 이야기로 부드럽게 전환하세요."""

        prompt += f"\n\n{CORE_PRINCIPLES}"
        return prompt

    async def handle_turn(self, user_id: str, text: str, now_ms: Optional[int] = None) -> TurnResult:
        if not user_id:
            raise ValidationError("user_id", "사용자 ID가 필요합니다.")
        text = (text or "").strip()
        if not text:
            raise ValidationError("text", "대화 내용이 비어 있습니다.")

        now_ms = now_ms if now_ms is not None else now_millis()

        history = crud_conversation.get_conversation_history(self.db, user_id, now_ms=now_ms)
        messages = history["messages"]
        photo_session = history["photo_session"]

        self._record_previous_topic(user_id, messages, text)

        crud_conversation.add_message(self.db, user_id, "user", text, now_ms)

        stage = determine_stage(text, has_history=bool(messages), photo_active=photo_session is not None)
        trauma_check = crud_trauma.check_for_trauma_content(self.db, user_id, text)

        system_prompt = self.build_system_prompt(
            user_id,
            text,
            stage,
            photo_session.image_analysis if photo_session else None,
            trauma_check["matched_keywords"],
        )
        recent = [{"role": m.role, "content": m.content} for m in messages[-PROMPT_HISTORY_LIMIT:]]

        used_fallback = False
        try:
            reply = await self.ai.generate_reply(system_prompt, recent, text)
        except UpstreamServiceError as e:
            logger.warning(f"LLM reply failed for user {user_id}, using fallback: {e}")
            reply = fallback_reply(text, stage)
            used_fallback = True

        reply_check = crud_trauma.check_for_trauma_content(self.db, user_id, reply)
        if reply_check["has_match"]:
            logger.info(f"Reply for user {user_id} touched trauma keywords {reply_check['matched_keywords']}; redirecting")
            reply = TRAUMA_REDIRECT_REPLY

        crud_conversation.add_message(self.db, user_id, "assistant", reply, now_ms)

        return TurnResult(
            user_text=text,
            response_text=reply,
            stage=stage,
            used_fallback=used_fallback,
            trauma_flagged=trauma_check["has_match"],
            matched_trauma_keywords=trauma_check["matched_keywords"],
        )

    async def start_photo_session(
        self,
        user_id: str,
        image_bytes: bytes,
        media_type: str,
        now_ms: Optional[int] = None
    ) -> dict:
        if not image_bytes:
            raise ValidationError("image", "이미지 파일이 필요합니다.")

        try:
            image_analysis = await self.ai.describe_image(image_bytes, media_type)
        except UpstreamServiceError as e:
            logger.warning(f"Image analysis failed for user {user_id}: {e}")
            image_analysis = DEFAULT_IMAGE_ANALYSIS

        session_id = crud_conversation.create_photo_session(self.db, user_id, image_analysis, start_time=now_ms)
        return {"session_id": session_id, "image_analysis": image_analysis}

    async def end_session(self, user_id: str, now_ms: Optional[int] = None) -> SessionReport:
        """전체 대화 기록을 평가해 리포트를 저장하고 사진 세션을 종료"""
        messages = crud_conversation.get_all_messages(self.db, user_id, now_ms=now_ms)
        if not messages:
            raise NotFoundError("conversation", user_id)

        assessment = self.estimator.estimate(messages)

        transcript = "\n".join(
            f"{'환자' if m.role == 'user' else '이음이'}: {m.content}" for m in messages if m.role != "system"
        )
        assessment_text = (
            f"기억력 {assessment.memory_score}/5, 지남력 {assessment.orientation_score}/5, "
            f"언어능력 {assessment.language_score}/5, {assessment.cdr_title}\n"
            f"행동심리증상: {', '.join(assessment.behavioral_symptoms)}\n"
            f"위험요인: {', '.join(assessment.risk_factors)}"
        )

        used_fallback = False
        try:
            summary = await self.ai.summarize_assessment(transcript, assessment_text)
        except UpstreamServiceError as e:
            logger.warning(f"Report summary failed for user {user_id}, using local insight: {e}")
            summary = assessment.clinical_insight
            used_fallback = True

        report = crud_report.create_report(self.db, user_id, assessment, len(messages), summary)
        crud_conversation.deactivate_photo_session(self.db, user_id)

        logger.info(f"Report {report.id} generated for user {user_id}: {assessment.cdr_label}")
        return SessionReport(report=report, assessment=assessment, summary=summary, used_fallback=used_fallback)
