"""
데이터베이스 연결 설정
"""
import logging
import time
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from eume.config import DATABASE_URL
from eume.errors import StorageError

logger = logging.getLogger(__name__)

SQLALCHEMY_DATABASE_URL = DATABASE_URL

# PostgreSQL의 경우 드라이버 지정
if SQLALCHEMY_DATABASE_URL.startswith("postgresql://"):
    SQLALCHEMY_DATABASE_URL = SQLALCHEMY_DATABASE_URL.replace(
        "postgresql://", "postgresql+psycopg2://"
    )
# SQLite용 연결 설정
connect_args = {"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}

# 엔진 생성
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args=connect_args
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """데이터베이스 세션을 가져온다 (의존성 주입용)"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def utcnow() -> datetime:
    """naive UTC 현재 시각 (DateTime 컬럼 기본값)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def now_millis() -> int:
    """에포크 밀리초 현재 시각"""
    return int(time.time() * 1000)


@contextmanager
def storage_operation(db: Session, operation: str):
    """블록 전체를 하나의 트랜잭션으로 커밋하고, 실패 시 StorageError로 변환"""
    try:
        yield
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Storage operation '{operation}' failed: {e}", exc_info=True)
        raise StorageError(operation) from e
