from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional


class PatientBase(BaseModel):
    file_number: Optional[str] = Field(None, max_length=50)
    full_name: str = Field(..., min_length=1, max_length=255)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    blood_type: Optional[str] = None
    allergies: Optional[str] = None
    blood_pressure: Optional[str] = None
    body_temperature: Optional[float] = None
    heart_rate: Optional[int] = None
    weight: Optional[float] = None
    chronic_conditions: Optional[str] = None
    current_diagnoses: Optional[str] = None
    previous_diagnoses: Optional[str] = None
    medication: Optional[str] = None
    medication_doses: Optional[str] = None
    medication_notes: Optional[str] = None


class PatientCreate(PatientBase):
    # Accepted for older clients; must match the authenticated doctor
    doctor_id: Optional[int] = None


class PatientUpdate(PatientBase):
    pass


class PatientResponse(PatientBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AssignedPatientResponse(PatientResponse):
    assignment_status: str


class PatientCreatedResponse(BaseModel):
    id: int
    message: str
