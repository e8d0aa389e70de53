"""
이음이 치매 돌봄 대화 백엔드 - 메인 애플리케이션
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from eume.config import CORS_ORIGINS, LOG_LEVEL
from eume.database import engine, utcnow
from eume.errors import NotFoundError, StorageError, UpstreamServiceError, ValidationError
from eume.models import Base
from eume.routers import auth, care, conversation, patients, reports

# 로그 설정
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# 테이블 생성
Base.metadata.create_all(bind=engine)

# FastAPI 애플리케이션 초기화
app = FastAPI(
    title="Eume Companion API",
    description="치매 어르신을 위한 회상 대화 동반자 API",
    version="1.0.0"
)

# CORS 설정
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# 도메인 예외 -> HTTP 응답
@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": exc.message, "field": exc.field}
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "데이터 처리 중 오류가 발생했습니다"}
    )


@app.exception_handler(UpstreamServiceError)
async def upstream_error_handler(request: Request, exc: UpstreamServiceError):
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": "AI 서비스에 연결할 수 없습니다"}
    )


# 루트 엔드포인트
@app.get("/")
async def root():
    """API 동작 확인용 엔드포인트"""
    return {
        "message": "이음이 API에 오신 것을 환영합니다",
        "status": "running",
        "version": "1.0.0"
    }


# 헬스 체크 엔드포인트
@app.get("/health")
async def health_check():
    """시스템 상태 확인용 엔드포인트"""
    return {
        "status": "healthy",
        "service": "Eume Companion API",
        "timestamp": utcnow().isoformat()
    }


# 라우터 등록
app.include_router(auth.router)
app.include_router(conversation.router)
app.include_router(care.router)
app.include_router(patients.router)
app.include_router(reports.router)
