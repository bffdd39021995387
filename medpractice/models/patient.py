from sqlalchemy import Column, Integer, String, ForeignKey, Date, DateTime, Float, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

# Contact and clinical fields a doctor writes as a whole
PATIENT_FIELDS = (
    "file_number",
    "full_name",
    "date_of_birth",
    "gender",
    "phone",
    "email",
    "address",
    "blood_type",
    "allergies",
    "blood_pressure",
    "body_temperature",
    "heart_rate",
    "weight",
    "chronic_conditions",
    "current_diagnoses",
    "previous_diagnoses",
    "medication",
    "medication_doses",
    "medication_notes",
)

class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    # Set once a patient-role user with the same email exists
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    # Identifying information
    file_number = Column(String(50), nullable=True)
    full_name = Column(String(255), nullable=False)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)

    # Contact information
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    address = Column(String(255), nullable=True)

    # Vitals
    blood_type = Column(String(10), nullable=True)
    blood_pressure = Column(String(20), nullable=True)
    body_temperature = Column(Float, nullable=True)
    heart_rate = Column(Integer, nullable=True)
    weight = Column(Float, nullable=True)

    # Medical information
    allergies = Column(Text, nullable=True)
    chronic_conditions = Column(Text, nullable=True)
    current_diagnoses = Column(Text, nullable=True)
    previous_diagnoses = Column(Text, nullable=True)
    medication = Column(Text, nullable=True)
    medication_doses = Column(Text, nullable=True)
    medication_notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    assignments = relationship("DoctorPatientAssignment", back_populates="patient")
    appointments = relationship("Appointment", back_populates="patient")

    def __repr__(self):
        return f"<Patient(id={self.id}, name='{self.full_name}')>"
