from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Index, text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class AssignmentStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"

class DoctorPatientAssignment(Base):
    """Grants a doctor access to a patient while its status is active."""
    __tablename__ = "doctor_patient_assignments"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False)
    status = Column(String(20), nullable=False, default=AssignmentStatus.ACTIVE.value)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    doctor = relationship("User", back_populates="assignments")
    patient = relationship("Patient", back_populates="assignments")

    __table_args__ = (
        # At most one active assignment per doctor/patient pair
        Index(
            "uq_active_doctor_patient",
            "doctor_id",
            "patient_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        Index("idx_assignments_doctor_status", "doctor_id", "status"),
    )

    def __repr__(self):
        return f"<DoctorPatientAssignment(doctor_id={self.doctor_id}, patient_id={self.patient_id}, status='{self.status}')>"
