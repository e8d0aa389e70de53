"""
애플리케이션 설정
"""
import os
from dotenv import load_dotenv

load_dotenv()

# 데이터베이스
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./eume.db")

# 세션 관리 (밀리초)
SESSION_TIMEOUT_MS = int(os.getenv("SESSION_TIMEOUT_MS", str(30 * 60 * 1000)))  # 30분
PHOTO_SESSION_TTL_MS = int(os.getenv("PHOTO_SESSION_TTL_MS", str(60 * 60 * 1000)))  # 1시간
RECENT_MESSAGE_LIMIT = int(os.getenv("RECENT_MESSAGE_LIMIT", "20"))
PROMPT_HISTORY_LIMIT = int(os.getenv("PROMPT_HISTORY_LIMIT", "5"))

# AI 설정
AI_TIMEOUT_SECONDS = int(os.getenv("AI_TIMEOUT_SECONDS", "30"))
AI_MAX_TOKENS = int(os.getenv("AI_MAX_TOKENS", "512"))
AI_TEMPERATURE = float(os.getenv("AI_TEMPERATURE", "0.7"))

ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")

CLAUDE_MODEL = os.getenv("CLAUDE_MODEL", "claude-3-5-haiku-latest")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")

# 프로바이더 폴백 순서 (쉼표 구분)
DEFAULT_FALLBACK_ORDER = [
    name.strip()
    for name in os.getenv("AI_FALLBACK_ORDER", "claude,openai,gemini").split(",")
    if name.strip()
]

# 인증
SECRET_KEY = os.getenv("SECRET_KEY", "your-secret-key-here-change-in-production")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# CORS
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# 로그 설정
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
