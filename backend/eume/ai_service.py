import asyncio
import base64
import json
import logging
import re
from typing import Dict, List, Optional, Tuple

import anthropic
import openai
from google import generativeai as genai

from eume.config import (
    AI_MAX_TOKENS, AI_TEMPERATURE, AI_TIMEOUT_SECONDS, ANTHROPIC_API_KEY, CLAUDE_MODEL,
    DEFAULT_FALLBACK_ORDER, GEMINI_MODEL, GOOGLE_API_KEY, OPENAI_API_KEY, OPENAI_MODEL,
)
from eume.errors import UpstreamServiceError

logger = logging.getLogger(__name__)

Image = Tuple[bytes, str]  # (바이트, MIME 타입)

COMPANION_SYSTEM_PROMPT = """You are "이음이", a warm and caring AI companion designed specifically for elderly people with dementia. You must respond in Korean only.

당신은 치매 어르신을 위한 따뜻한 AI 동반자 "이음이"입니다. 반드시 한국어로만 대답하세요."""

CORE_PRINCIPLES = """=== 핵심 원칙 (Core Principles) ===
1. 항상 존중하고 따뜻한 말투로 대화하기
2. 2-3문장 이내로 간결하고 명확하게 답변하기
3. 쉽고 친근한 단어 사용하기 (어려운 표현 금지)
4. 칭찬과 격려를 자주 표현하기
5. 긍정적인 기억과 추억 위주로 대화하기
6. 사용자의 감정에 공감하고 지지하기
7. 절대 틀렸다고 지적하거나 교정하지 않기

Response format: Always respond in warm, respectful Korean with 2-3 short sentences maximum."""

IMAGE_ANALYSIS_PROMPT = (
    "이 사진을 한국어로 자세히 설명해주세요. 사람들의 표정, 장소, 상황, 시대적 배경 등을 포함해서 "
    "회상 치료에 도움이 될 수 있는 모든 세부사항을 설명해주세요."
)


class ResponseParser:
    @staticmethod
    def parse_json_array(content: str) -> List[str]:
        """응답에서 JSON 문자열 배열을 추출. 실패 시 빈 리스트"""
        candidates = [content.strip()]
        match = re.search(r"\[.*?\]", content, re.DOTALL)
        if match: candidates.append(match.group(0))
        for candidate in candidates:
            try:
                parsed = json.loads(candidate)
            except json.JSONDecodeError:
                continue
            if isinstance(parsed, list):
                return [str(item).strip() for item in parsed if str(item).strip()]
        logger.warning(f"JSON array not found in response (first 200 chars): {content[:200]}")
        return []

    @staticmethod
    def parse_json_object(content: str) -> Dict:
        """응답에서 JSON 객체를 추출. 실패 시 빈 딕셔너리"""
        candidates = [content.strip()]
        match = re.search(r"\{.*\}", content, re.DOTALL)
        if match: candidates.append(match.group(0))
        for candidate in candidates:
            try:
                parsed = json.loads(candidate)
            except json.JSONDecodeError:
                continue
            if isinstance(parsed, dict):
                return parsed
        logger.warning(f"JSON object not found in response (first 200 chars): {content[:200]}")
        return {}


def _chat_messages(messages: List[Dict[str, str]]) -> List[Dict[str, str]]:
    """user/assistant 메시지만 남기고 첫 메시지가 user가 되도록 정리"""
    chat = [{"role": m["role"], "content": m["content"]} for m in messages if m["role"] in ("user", "assistant") and m["content"]]
    while chat and chat[0]["role"] != "user": chat.pop(0)
    return chat


class AIService:
    def __init__(self):
        self.claude_client = anthropic.Anthropic(api_key=ANTHROPIC_API_KEY) if ANTHROPIC_API_KEY and "dummy" not in ANTHROPIC_API_KEY else None
        if not self.claude_client: logger.warning("Anthropic API key not available or is a dummy key.")
        self.openai_client = openai.OpenAI(api_key=OPENAI_API_KEY) if OPENAI_API_KEY and "dummy" not in OPENAI_API_KEY else None
        if not self.openai_client: logger.warning("OpenAI API key not available or is a dummy key.")
        self.gemini_model = None
        if GOOGLE_API_KEY and "dummy" not in GOOGLE_API_KEY:
            try:
                genai.configure(api_key=GOOGLE_API_KEY)
                self.gemini_model = genai.GenerativeModel(GEMINI_MODEL)
            except Exception as e: logger.error(f"Failed to configure Gemini: {e}")
        if not self.gemini_model: logger.warning("Google API key not available or is a dummy key.")

    async def _generate_with_claude(self, system_prompt: str, messages: List[Dict[str, str]], image: Optional[Image] = None) -> str:
        if not self.claude_client: raise ConnectionError("Claude client not available.")
        logger.info("Calling Claude API")
        chat = _chat_messages(messages)
        if image:
            data, media_type = image
            chat[-1]["content"] = [
                {"type": "image", "source": {"type": "base64", "media_type": media_type, "data": base64.b64encode(data).decode("ascii")}},
                {"type": "text", "text": chat[-1]["content"]},
            ]
        response = await asyncio.wait_for(asyncio.to_thread(self.claude_client.messages.create, model=CLAUDE_MODEL, max_tokens=AI_MAX_TOKENS, temperature=AI_TEMPERATURE, system=system_prompt, messages=chat), timeout=AI_TIMEOUT_SECONDS)
        content = response.content[0].text
        logger.debug(f"Claude raw response (first 500 chars): {content[:500]}")
        return content

    async def _generate_with_openai(self, system_prompt: str, messages: List[Dict[str, str]], image: Optional[Image] = None) -> str:
        if not self.openai_client: raise ConnectionError("OpenAI client not available.")
        logger.info("Calling OpenAI API")
        chat = _chat_messages(messages)
        if image:
            data, media_type = image
            chat[-1]["content"] = [
                {"type": "text", "text": chat[-1]["content"]},
                {"type": "image_url", "image_url": {"url": f"data:{media_type};base64,{base64.b64encode(data).decode('ascii')}"}},
            ]
        response = await asyncio.wait_for(asyncio.to_thread(self.openai_client.chat.completions.create, model=OPENAI_MODEL, messages=[{"role": "system", "content": system_prompt}] + chat, temperature=AI_TEMPERATURE, max_tokens=AI_MAX_TOKENS), timeout=AI_TIMEOUT_SECONDS)
        content = response.choices[0].message.content
        if content is None: raise ValueError("OpenAI API returned None content.")
        logger.debug(f"OpenAI raw response (first 500 chars): {content[:500]}")
        return content

    async def _generate_with_gemini(self, system_prompt: str, messages: List[Dict[str, str]], image: Optional[Image] = None) -> str:
        if not self.gemini_model: raise ConnectionError("Gemini model not available.")
        logger.info("Calling Gemini API")
        transcript = "\n".join(f"{'환자' if m['role'] == 'user' else '이음이'}: {m['content']}" for m in _chat_messages(messages))
        effective_prompt: list = [f"{system_prompt}\n\n{transcript}"]
        if image:
            data, media_type = image
            effective_prompt.append({"mime_type": media_type, "data": data})
        response = await asyncio.wait_for(asyncio.to_thread(self.gemini_model.generate_content, effective_prompt), timeout=AI_TIMEOUT_SECONDS)
        content = response.text if hasattr(response, 'text') else ''
        if not content and hasattr(response, 'parts') and response.parts: content = "".join(part.text for part in response.parts if hasattr(part, 'text'))
        if not content: raise ValueError("Gemini API returned empty content.")
        logger.debug(f"Gemini raw response (first 500 chars): {content[:500]}")
        return content

    async def complete(self, system_prompt: str, messages: List[Dict[str, str]], image: Optional[Image] = None, fallback_order: Optional[List[str]] = None) -> str:
        """폴백 순서대로 프로바이더를 시도. 모두 실패하면 UpstreamServiceError"""
        current_fallback_order = fallback_order or DEFAULT_FALLBACK_ORDER
        last_error: Optional[Exception] = None
        for model_name_in_order in current_fallback_order:
            try:
                logger.info(f"Attempting completion with {model_name_in_order}")
                if model_name_in_order == "claude": content = await self._generate_with_claude(system_prompt, messages, image)
                elif model_name_in_order == "openai": content = await self._generate_with_openai(system_prompt, messages, image)
                elif model_name_in_order == "gemini": content = await self._generate_with_gemini(system_prompt, messages, image)
                else: logger.warning(f"Unknown AI provider {model_name_in_order}. Skipping."); continue

                content = content.strip()
                if content: return content
                last_error = ValueError(f"Empty response from {model_name_in_order}.")
            except ConnectionError as e: logger.warning(f"{model_name_in_order} client not available: {e}"); last_error = e
            except asyncio.TimeoutError as e: logger.warning(f"{model_name_in_order} timed out after {AI_TIMEOUT_SECONDS}s"); last_error = e
            except Exception as e: logger.error(f"Error with {model_name_in_order}: {type(e).__name__} - {e}"); last_error = e

        logger.error(f"All AI providers failed. Order: {current_fallback_order}. Last error: {last_error}")
        raise UpstreamServiceError("llm", str(last_error) if last_error else "no provider configured")

    async def generate_reply(self, system_prompt: str, history: List[Dict[str, str]], user_text: str) -> str:
        """대화 응답 생성"""
        messages = history + [{"role": "user", "content": user_text}]
        return await self.complete(system_prompt, messages)

    async def describe_image(self, image_bytes: bytes, media_type: str) -> str:
        """회상 치료용 사진 설명 생성"""
        return await self.complete(
            "You describe photos in Korean for reminiscence therapy.",
            [{"role": "user", "content": IMAGE_ANALYSIS_PROMPT}],
            image=(image_bytes, media_type),
        )

    async def extract_positive_keywords(self, conversation_text: str) -> List[str]:
        """대화 기록에서 환자가 긍정적으로 반응한 키워드 분석"""
        prompt = f"""다음은 치매 환자와의 실제 대화 기록입니다. 환자가 긍정적으로 반응한 주제와 키워드를 분석해주세요.

=== 대화 기록 ===
{conversation_text}

=== 분석 요청 ===
환자가 다음과 같은 반응을 보인 주제들을 찾아주세요:
1. 긴 대답을 한 주제
2. 감정적으로 반응한 주제
3. 구체적인 기억을 떠올린 주제
4. 웃음이나 기쁨을 표현한 주제

효과적인 키워드 5개를 JSON 배열로만 응답하세요.
예: ["시골집", "어머니", "봄날", "친구", "학교"]"""
        content = await self.complete("You analyze conversations and answer with JSON only.", [{"role": "user", "content": prompt}])
        return ResponseParser.parse_json_array(content)[:5]

    async def generate_personalized_question(self, prompt: str) -> Dict:
        """개인화 질문 생성 (JSON 객체 응답)"""
        content = await self.complete("You write short Korean questions for dementia patients and answer with JSON only.", [{"role": "user", "content": prompt}])
        return ResponseParser.parse_json_object(content)

    async def summarize_assessment(self, transcript: str, assessment_text: str) -> str:
        """보호자용 서술형 평가 요약"""
        prompt = f"""다음은 치매 어르신과 AI 동반자의 대화 기록과 휴리스틱 인지 평가 결과입니다.
보호자가 읽을 수 있도록 관찰 내용을 5문장 이내의 한국어로 요약해주세요. 진단이나 처방은 하지 마세요.

=== 대화 기록 ===
{transcript}

=== 평가 결과 ===
{assessment_text}"""
        return await self.complete("You write cautious, non-diagnostic Korean care summaries.", [{"role": "user", "content": prompt}])
