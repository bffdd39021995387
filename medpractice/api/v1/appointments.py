from fastapi import APIRouter, Depends, Query, status
from typing import Any, Dict, List, Optional

from ...api.deps import (
    get_acting_doctor, get_appointment_service, get_current_user,
    get_patient_service
)
from ...core.exceptions import Forbidden
from ...core.security import UserRole
from ...services.appointment_service import AppointmentService
from ...services.patient_service import PatientService
from ...schemas.appointment import (
    AppointmentCreate, AppointmentListItem, AppointmentResponse,
    AppointmentUpdate, MessageResponse
)

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.get("", response_model=List[AppointmentListItem])
def list_appointments(
    doctor_id: Optional[int] = Query(None, alias="doctorId"),
    current_user: Dict[str, Any] = Depends(get_current_user),
    appointment_service: AppointmentService = Depends(get_appointment_service),
    patient_service: PatientService = Depends(get_patient_service)
):
    """List the caller's own appointments, newest first."""
    if current_user["role"] == UserRole.DOCTOR:
        if doctor_id is not None and doctor_id != current_user["id"]:
            raise Forbidden("doctorId does not match the authenticated user")
        return appointment_service.list_for_doctor(current_user["id"])

    # A patient seen by several doctors owns one record per doctor
    patient_ids = patient_service.find_for_user(current_user["id"])
    return appointment_service.list_for_patient(patient_ids)

@router.get("/patient/{patient_id}", response_model=List[AppointmentResponse])
def list_patient_appointments(
    patient_id: int,
    doctor: Dict[str, Any] = Depends(get_acting_doctor),
    appointment_service: AppointmentService = Depends(get_appointment_service)
):
    """A patient's appointments with the calling doctor."""
    return appointment_service.list_for_patient_by_doctor(patient_id, doctor["id"])

@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    appointment_data: AppointmentCreate,
    doctor: Dict[str, Any] = Depends(get_acting_doctor),
    appointment_service: AppointmentService = Depends(get_appointment_service)
):
    if appointment_data.doctor_id is not None and appointment_data.doctor_id != doctor["id"]:
        raise Forbidden("doctor_id does not match the authenticated user")

    return appointment_service.create(
        doctor_id=doctor["id"],
        patient_id=appointment_data.patient_id,
        appointment_date=appointment_data.appointment_date,
        appointment_time=appointment_data.appointment_time,
        status=appointment_data.status,
        notes=appointment_data.notes,
    )

@router.put("/{appointment_id}", response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    appointment_data: AppointmentUpdate,
    doctor_id: Optional[int] = Query(None, alias="doctorId"),
    current_user: Dict[str, Any] = Depends(get_current_user),
    appointment_service: AppointmentService = Depends(get_appointment_service),
    patient_service: PatientService = Depends(get_patient_service)
):
    """Doctors edit their appointments; patients may only change the status."""
    fields = appointment_data.model_dump(exclude_unset=True)

    if current_user["role"] == UserRole.DOCTOR:
        if doctor_id is not None and doctor_id != current_user["id"]:
            raise Forbidden("doctorId does not match the authenticated user")
        return appointment_service.update(
            appointment_id, fields, doctor_id=current_user["id"]
        )

    patient_ids = patient_service.find_for_user(current_user["id"])
    if not patient_ids:
        raise Forbidden("Not authorized to update this appointment")
    return appointment_service.update(appointment_id, fields, patient_id=patient_ids)

@router.delete("/{appointment_id}", response_model=MessageResponse)
def delete_appointment(
    appointment_id: int,
    patient_id: Optional[int] = Query(None, alias="patientId"),
    doctor: Dict[str, Any] = Depends(get_acting_doctor),
    appointment_service: AppointmentService = Depends(get_appointment_service)
):
    appointment_service.delete(appointment_id, doctor["id"], patient_id)
    return {"message": "Appointment deleted successfully"}
