from pydantic import BaseModel, Field
from datetime import date, datetime, time
from typing import Optional


class AppointmentCreate(BaseModel):
    # Required values are checked by the service so that a missing one is a 400
    doctor_id: Optional[int] = None
    patient_id: Optional[int] = None
    appointment_date: Optional[date] = None
    appointment_time: Optional[time] = None
    status: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class AppointmentUpdate(BaseModel):
    patient_id: Optional[int] = None
    appointment_date: Optional[date] = None
    appointment_time: Optional[time] = None
    status: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class AppointmentResponse(BaseModel):
    id: int
    doctor_id: int
    patient_id: int
    appointment_date: date
    appointment_time: time
    status: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AppointmentListItem(AppointmentResponse):
    # Doctor listings carry the patient name, patient listings the doctor name
    patient_name: Optional[str] = None
    doctor_name: Optional[str] = None


class MessageResponse(BaseModel):
    message: str
