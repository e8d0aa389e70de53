"""
환자 프로필 관련 CRUD 조작
"""
import uuid
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from eume.database import storage_operation
from eume.models.patient import Patient

PATIENT_FIELDS = ("name", "age", "gender", "dementia_level", "trigger_elements", "relationship_to_owner", "memo")


def create_patient(db: Session, owner_id: str, data: Dict) -> Patient:
    """환자 등록"""
    patient = Patient(
        id=str(uuid.uuid4()),
        owner_id=owner_id,
        **{field: data[field] for field in PATIENT_FIELDS if field in data}
    )

    with storage_operation(db, "create patient"):
        db.add(patient)
    db.refresh(patient)

    return patient


def get_patient(db: Session, owner_id: str, patient_id: str) -> Optional[Patient]:
    """보호자 소유의 환자 조회"""
    with storage_operation(db, "get patient"):
        return db.query(Patient).filter(
            Patient.id == patient_id,
            Patient.owner_id == owner_id
        ).first()


def get_patients(db: Session, owner_id: str) -> List[Patient]:
    """보호자의 환자 목록 조회 (등록순)"""
    with storage_operation(db, "get patients"):
        return db.query(Patient).filter(
            Patient.owner_id == owner_id
        ).order_by(Patient.created_at.asc()).all()


def update_patient(db: Session, owner_id: str, patient_id: str, data: Dict) -> Optional[Patient]:
    """환자 정보 수정"""
    patient = get_patient(db, owner_id, patient_id)

    if patient:
        with storage_operation(db, "update patient"):
            for field in PATIENT_FIELDS:
                if field in data:
                    setattr(patient, field, data[field])
        db.refresh(patient)

    return patient


def delete_patient(db: Session, owner_id: str, patient_id: str) -> bool:
    """환자 삭제"""
    with storage_operation(db, "delete patient"):
        deleted = db.query(Patient).filter(
            Patient.id == patient_id,
            Patient.owner_id == owner_id
        ).delete(synchronize_session=False)
    return deleted > 0
