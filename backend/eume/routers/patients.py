"""
환자 프로필 라우터
"""
from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from eume.crud import patient as crud_patient
from eume.database import get_db
from eume.errors import NotFoundError
from eume.routers.auth import get_current_user

router = APIRouter(
    prefix="/patients",
    tags=["환자"]
)

Gender = Literal["MALE", "FEMALE"]


class PatientCreate(BaseModel):
    name: str = Field(..., min_length=1)
    age: int = Field(..., ge=0, le=150)
    gender: Gender
    dementia_level: str = ""
    trigger_elements: str = ""
    relationship_to_owner: str = ""
    memo: str = ""


class PatientUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    age: Optional[int] = Field(None, ge=0, le=150)
    gender: Optional[Gender] = None
    dementia_level: Optional[str] = None
    trigger_elements: Optional[str] = None
    relationship_to_owner: Optional[str] = None
    memo: Optional[str] = None


class PatientResponse(BaseModel):
    id: str
    name: str
    age: int
    gender: str
    dementia_level: Optional[str]
    trigger_elements: Optional[str]
    relationship_to_owner: Optional[str]
    memo: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


@router.post("", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
async def create_patient(
    patient_data: PatientCreate,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """환자 등록"""
    return crud_patient.create_patient(db, current_user.id, patient_data.model_dump())


@router.get("", response_model=List[PatientResponse])
async def get_patients(
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """내 환자 목록"""
    return crud_patient.get_patients(db, current_user.id)


@router.put("/{patient_id}", response_model=PatientResponse)
async def update_patient(
    patient_id: str,
    patient_data: PatientUpdate,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """환자 정보 수정 (보낸 필드만 반영)"""
    patient = crud_patient.update_patient(
        db, current_user.id, patient_id, patient_data.model_dump(exclude_unset=True)
    )
    if not patient:
        raise NotFoundError("patient", patient_id)
    return patient


@router.delete("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_patient(
    patient_id: str,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """환자 삭제"""
    if not crud_patient.delete_patient(db, current_user.id, patient_id):
        raise NotFoundError("patient", patient_id)
