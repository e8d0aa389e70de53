"""
인증 관련 라우터
"""
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from eume.config import ACCESS_TOKEN_EXPIRE_MINUTES
from eume.crud import user as crud_user
from eume.database import get_db
from eume.security import create_access_token, decode_access_token

router = APIRouter(
    prefix="/auth",
    tags=["인증"]
)

# OAuth2 설정
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


# 요청/응답 모델
class UserRegister(BaseModel):
    """보호자 가입용 모델"""
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """보호자 응답 모델"""
    id: str
    username: str
    name: str
    role: str
    created_at: datetime

    class Config:
        from_attributes = True


class Token(BaseModel):
    """토큰 응답 모델"""
    access_token: str
    token_type: str = "bearer"


credentials_exception = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="인증 정보가 유효하지 않습니다",
    headers={"WWW-Authenticate": "Bearer"},
)


# 현재 사용자를 가져오는 의존 함수
async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
):
    """토큰에서 현재 보호자 계정을 조회"""
    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exception

    user_id: Optional[str] = payload.get("sub")
    if user_id is None:
        raise credentials_exception

    user = crud_user.get_user(db, user_id)
    if user is None:
        raise credentials_exception

    return user


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    user_data: UserRegister,
    db: Session = Depends(get_db)
):
    """보호자 가입"""
    # 사용자명 중복 확인
    if crud_user.get_user_by_username(db, user_data.username):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="이미 사용 중인 아이디입니다"
        )

    return crud_user.create_user(
        db=db,
        username=user_data.username,
        password=user_data.password,
        name=user_data.name
    )


@router.post("/login", response_model=Token)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """보호자 로그인"""
    user = crud_user.authenticate_user(
        db=db,
        username=form_data.username,
        password=form_data.password
    )

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="아이디 또는 비밀번호가 올바르지 않습니다",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(
        data={"sub": user.id},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )

    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", response_model=UserResponse)
async def read_users_me(current_user=Depends(get_current_user)):
    """현재 보호자 정보"""
    return current_user
