"""
보호자 계정 관련 CRUD 조작
"""
import uuid
from typing import Optional

from sqlalchemy.orm import Session

from eume.database import storage_operation
from eume.models.user import AuthUser
from eume.security import get_password_hash, verify_password


def get_user(db: Session, user_id: str) -> Optional[AuthUser]:
    """ID로 계정 조회"""
    with storage_operation(db, "get auth user"):
        return db.query(AuthUser).filter(AuthUser.id == user_id).first()


def get_user_by_username(db: Session, username: str) -> Optional[AuthUser]:
    """사용자명으로 계정 조회"""
    with storage_operation(db, "get auth user by username"):
        return db.query(AuthUser).filter(AuthUser.username == username).first()


def create_user(db: Session, username: str, password: str, name: str, role: str = "caregiver") -> AuthUser:
    """신규 계정 생성"""
    # 비밀번호 해시화
    hashed_password = get_password_hash(password)

    db_user = AuthUser(
        id=str(uuid.uuid4()),
        username=username,
        name=name,
        role=role,
        hashed_password=hashed_password
    )

    with storage_operation(db, "create auth user"):
        db.add(db_user)
    db.refresh(db_user)

    return db_user


def authenticate_user(db: Session, username: str, password: str) -> Optional[AuthUser]:
    """계정 인증"""
    user = get_user_by_username(db, username)
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user
