from sqlalchemy import select, update
from sqlalchemy.sql import func
from typing import Any, Dict, List, Optional
import logging

from ..core.database import Database, as_dict
from ..core.exceptions import Forbidden, NotFound, ValidationError
from ..core.security import UserRole
from ..models.assignment import AssignmentStatus, DoctorPatientAssignment
from ..models.patient import PATIENT_FIELDS, Patient
from ..models.user import User
from .assignments import active_assignment_query, has_active_assignment

logger = logging.getLogger(__name__)


class PatientService:
    """Patient records, each reachable only through an active assignment."""

    def __init__(self, db: Database):
        self.db = db

    def list_assigned_to(self, doctor_id: Optional[int]) -> List[Dict[str, Any]]:
        """Patients the doctor is actively assigned to, newest first."""
        if doctor_id is None:
            raise ValidationError("Doctor ID is required")

        return self.db.execute(
            select(
                Patient.__table__,
                DoctorPatientAssignment.status.label("assignment_status"),
            )
            .join(
                DoctorPatientAssignment.__table__,
                DoctorPatientAssignment.patient_id == Patient.id,
            )
            .where(
                DoctorPatientAssignment.doctor_id == doctor_id,
                DoctorPatientAssignment.status == AssignmentStatus.ACTIVE.value,
            )
            .order_by(Patient.created_at.desc(), Patient.id.desc())
        )

    def get_by_id(self, patient_id: int, doctor_id: Optional[int]) -> Dict[str, Any]:
        if doctor_id is None:
            raise ValidationError("Doctor ID is required")

        # Checked before existence so an unassigned doctor learns nothing
        if not self.db.execute(active_assignment_query(doctor_id, patient_id)):
            raise NotFound("Patient not found or not assigned to this doctor")

        rows = self.db.execute(
            select(Patient.__table__).where(Patient.id == patient_id)
        )
        if not rows:
            raise NotFound("Patient not found")
        return rows[0]

    def create(self, doctor_id: Optional[int], fields: Dict[str, Any]) -> int:
        """Insert a patient and assign it to the doctor as one unit."""
        if doctor_id is None:
            raise ValidationError("Doctor ID is required")

        patient = Patient(**{name: fields.get(name) for name in PATIENT_FIELDS})

        with self.db.transaction() as session:
            if patient.email:
                patient.user_id = session.execute(
                    select(User.id).where(
                        User.email == patient.email,
                        User.role == UserRole.PATIENT,
                    )
                ).scalar()

            session.add(patient)
            session.flush()

            session.add(DoctorPatientAssignment(
                doctor_id=doctor_id,
                patient_id=patient.id,
                status=AssignmentStatus.ACTIVE.value,
            ))
            session.flush()

        logger.info(f"Patient {patient.id} added and assigned to doctor {doctor_id}")
        return patient.id

    def update(
        self,
        patient_id: int,
        doctor_id: Optional[int],
        fields: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Overwrite every patient field; absent fields are cleared."""
        if doctor_id is None:
            raise ValidationError("Doctor ID is required")

        with self.db.transaction() as session:
            if not has_active_assignment(session, doctor_id, patient_id):
                raise Forbidden("Not authorized to update this patient")

            patient = session.get(Patient, patient_id)
            if patient is None:
                raise NotFound("Patient not found")

            for name in PATIENT_FIELDS:
                setattr(patient, name, fields.get(name))
            patient.updated_at = func.now()

            session.flush()
            session.refresh(patient)

        logger.info(f"Patient {patient_id} updated by doctor {doctor_id}")
        return as_dict(patient)

    def unassign(self, patient_id: int, doctor_id: Optional[int]) -> None:
        """Deactivate the doctor's assignment; the patient row is kept."""
        if doctor_id is None:
            raise ValidationError("Doctor ID is required")

        with self.db.transaction() as session:
            result = session.execute(
                update(DoctorPatientAssignment)
                .where(
                    DoctorPatientAssignment.doctor_id == doctor_id,
                    DoctorPatientAssignment.patient_id == patient_id,
                    DoctorPatientAssignment.status == AssignmentStatus.ACTIVE.value,
                )
                .values(status=AssignmentStatus.INACTIVE.value, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFound("Patient not found or not assigned to this doctor")

        logger.info(f"Patient {patient_id} removed from doctor {doctor_id}")

    def find_for_user(self, user_id: int) -> List[int]:
        """Return the ids of every patient record linked to a patient user.

        Each doctor keeps their own record for a patient, so one login can
        own several.
        """
        rows = self.db.execute(
            select(Patient.id)
            .where(Patient.user_id == user_id)
            .order_by(Patient.id)
        )
        return [row["id"] for row in rows]
