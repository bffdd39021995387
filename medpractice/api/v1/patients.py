from fastapi import APIRouter, Depends, status
from typing import Any, Dict, List

from ...api.deps import get_acting_doctor, get_patient_service
from ...core.exceptions import Forbidden
from ...services.patient_service import PatientService
from ...schemas.patient import (
    AssignedPatientResponse, PatientCreate, PatientCreatedResponse,
    PatientResponse, PatientUpdate
)
from ...schemas.appointment import MessageResponse

router = APIRouter(prefix="/patients", tags=["Patients"])

@router.get("", response_model=List[AssignedPatientResponse])
def list_patients(
    doctor: Dict[str, Any] = Depends(get_acting_doctor),
    patient_service: PatientService = Depends(get_patient_service)
):
    """List the patients actively assigned to the calling doctor."""
    return patient_service.list_assigned_to(doctor["id"])

@router.get("/{patient_id}", response_model=PatientResponse)
def get_patient(
    patient_id: int,
    doctor: Dict[str, Any] = Depends(get_acting_doctor),
    patient_service: PatientService = Depends(get_patient_service)
):
    return patient_service.get_by_id(patient_id, doctor["id"])

@router.post("", response_model=PatientCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_patient(
    patient_data: PatientCreate,
    doctor: Dict[str, Any] = Depends(get_acting_doctor),
    patient_service: PatientService = Depends(get_patient_service)
):
    """Add a new patient and assign it to the calling doctor."""
    if patient_data.doctor_id is not None and patient_data.doctor_id != doctor["id"]:
        raise Forbidden("doctor_id does not match the authenticated user")

    patient_id = patient_service.create(
        doctor["id"], patient_data.model_dump(exclude={"doctor_id"})
    )
    return {
        "id": patient_id,
        "message": "Patient added and assigned to doctor successfully"
    }

@router.put("/{patient_id}", response_model=PatientResponse)
def update_patient(
    patient_id: int,
    patient_data: PatientUpdate,
    doctor: Dict[str, Any] = Depends(get_acting_doctor),
    patient_service: PatientService = Depends(get_patient_service)
):
    return patient_service.update(patient_id, doctor["id"], patient_data.model_dump())

@router.delete("/{patient_id}", response_model=MessageResponse)
def remove_patient(
    patient_id: int,
    doctor: Dict[str, Any] = Depends(get_acting_doctor),
    patient_service: PatientService = Depends(get_patient_service)
):
    """Remove the patient from the doctor's list; the record itself is kept."""
    patient_service.unassign(patient_id, doctor["id"])
    return {"message": "Patient removed from doctor successfully"}
