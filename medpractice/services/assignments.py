"""Doctor-patient assignment checks shared by the patient and appointment services."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models.assignment import AssignmentStatus, DoctorPatientAssignment


def active_assignment_query(doctor_id: int, patient_id: int):
    """Select the active assignment row linking a doctor to a patient, if any."""
    return (
        select(DoctorPatientAssignment.id)
        .where(
            DoctorPatientAssignment.doctor_id == doctor_id,
            DoctorPatientAssignment.patient_id == patient_id,
            DoctorPatientAssignment.status == AssignmentStatus.ACTIVE.value,
        )
        .limit(1)
    )


def has_active_assignment(session: Session, doctor_id: int, patient_id: int) -> bool:
    return session.execute(active_assignment_query(doctor_id, patient_id)).first() is not None
