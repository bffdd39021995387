from sqlalchemy import delete, select
from sqlalchemy.sql import func
from typing import Any, Dict, List, Optional, Sequence, Union
import logging

from ..core.database import Database, as_dict
from ..core.exceptions import Forbidden, NotFound, ValidationError
from ..models.appointment import Appointment, AppointmentStatus
from ..models.patient import Patient
from ..models.user import User
from .assignments import active_assignment_query, has_active_assignment

logger = logging.getLogger(__name__)

# Fields a doctor may change on an appointment they own
DOCTOR_EDITABLE_FIELDS = ("appointment_date", "appointment_time", "status", "notes")

_SCHEDULE_ORDER = (Appointment.appointment_date.desc(), Appointment.appointment_time.desc())

PatientIds = Optional[Union[int, Sequence[int]]]


def _as_ids(patient_id) -> List[int]:
    if isinstance(patient_id, int):
        return [patient_id]
    return list(patient_id)


class AppointmentService:
    def __init__(self, db: Database):
        self.db = db

    def list_for_doctor(self, doctor_id: Optional[int]) -> List[Dict[str, Any]]:
        if doctor_id is None:
            raise ValidationError("Doctor ID is required")

        return self.db.execute(
            select(Appointment.__table__, Patient.full_name.label("patient_name"))
            .join(Patient.__table__, Appointment.patient_id == Patient.id)
            .where(Appointment.doctor_id == doctor_id)
            .order_by(*_SCHEDULE_ORDER)
        )

    def list_for_patient(self, patient_id: PatientIds) -> List[Dict[str, Any]]:
        """Appointments of one patient record, or of all records given as a list."""
        if patient_id is None:
            raise ValidationError("Patient ID is required")

        patient_ids = _as_ids(patient_id)
        if not patient_ids:
            return []

        return self.db.execute(
            select(Appointment.__table__, User.full_name.label("doctor_name"))
            .join(User.__table__, Appointment.doctor_id == User.id)
            .where(Appointment.patient_id.in_(patient_ids))
            .order_by(*_SCHEDULE_ORDER)
        )

    def list_for_patient_by_doctor(self, patient_id: int, doctor_id: Optional[int]) -> List[Dict[str, Any]]:
        """A patient's appointments with one doctor, for an assigned doctor only."""
        if doctor_id is None:
            raise ValidationError("Doctor ID is required")

        if not self.db.execute(active_assignment_query(doctor_id, patient_id)):
            raise Forbidden("Not authorized to view appointments for this patient")

        return self.db.execute(
            select(Appointment.__table__)
            .where(
                Appointment.patient_id == patient_id,
                Appointment.doctor_id == doctor_id,
            )
            .order_by(*_SCHEDULE_ORDER)
        )

    def create(
        self,
        doctor_id: Optional[int],
        patient_id: Optional[int],
        appointment_date,
        appointment_time,
        status: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not all(value is not None for value in (doctor_id, patient_id, appointment_date, appointment_time)):
            raise ValidationError("Missing required appointment fields")

        with self.db.transaction() as session:
            if not has_active_assignment(session, doctor_id, patient_id):
                raise Forbidden("Not authorized to add appointments for this patient")

            appointment = Appointment(
                doctor_id=doctor_id,
                patient_id=patient_id,
                appointment_date=appointment_date,
                appointment_time=appointment_time,
                status=status or AppointmentStatus.SCHEDULED.value,
                notes=notes,
            )
            session.add(appointment)
            session.flush()
            session.refresh(appointment)

        logger.info(f"Appointment {appointment.id} created by doctor {doctor_id} for patient {patient_id}")
        return as_dict(appointment)

    def update(
        self,
        appointment_id: int,
        fields: Dict[str, Any],
        doctor_id: Optional[int] = None,
        patient_id: PatientIds = None,
    ) -> Dict[str, Any]:
        """Update an appointment as its patient (status only) or as its doctor.

        On the patient path ``patient_id`` may list every record the caller
        owns.

        The doctor path needs ``fields["patient_id"]`` to name the patient the
        appointment belongs to, and changes only the fields present in
        ``fields``.
        """
        if patient_id is not None and doctor_id is None:
            return self._update_as_patient(appointment_id, patient_id, fields)
        if doctor_id is None:
            raise ValidationError("Doctor ID is required")
        return self._update_as_doctor(appointment_id, doctor_id, fields)

    def _update_as_patient(self, appointment_id: int, patient_id, fields: Dict[str, Any]) -> Dict[str, Any]:
        status = fields.get("status")
        if not status:
            raise ValidationError("Status is required")
        patient_ids = _as_ids(patient_id)

        with self.db.transaction() as session:
            owned = session.execute(
                select(Appointment.id).where(
                    Appointment.id == appointment_id,
                    Appointment.patient_id.in_(patient_ids),
                )
            ).first()
            if owned is None:
                raise Forbidden("Not authorized to update this appointment")

            appointment = self._get_for_update(session, appointment_id)
            appointment.status = status
            appointment.updated_at = func.now()
            session.flush()
            session.refresh(appointment)

        logger.info(f"Appointment {appointment_id} set to '{status}' by patient {appointment.patient_id}")
        return as_dict(appointment)

    def _update_as_doctor(self, appointment_id: int, doctor_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        with self.db.transaction() as session:
            owned = session.execute(
                select(Appointment.id).where(
                    Appointment.id == appointment_id,
                    Appointment.doctor_id == doctor_id,
                    Appointment.patient_id == fields.get("patient_id"),
                )
            ).first()
            if owned is None:
                raise Forbidden("Not authorized to update this appointment")

            appointment = self._get_for_update(session, appointment_id)
            for name in DOCTOR_EDITABLE_FIELDS:
                if name not in fields:
                    continue
                if fields[name] is None and name != "notes":
                    raise ValidationError(f"{name} cannot be empty")
                setattr(appointment, name, fields[name])
            appointment.updated_at = func.now()
            session.flush()
            session.refresh(appointment)

        logger.info(f"Appointment {appointment_id} updated by doctor {doctor_id}")
        return as_dict(appointment)

    def _get_for_update(self, session, appointment_id: int) -> Appointment:
        appointment = session.get(Appointment, appointment_id)
        if appointment is None:
            raise NotFound("Appointment not found")
        return appointment

    def delete(
        self,
        appointment_id: int,
        doctor_id: Optional[int],
        patient_id: Optional[int],
    ) -> None:
        if doctor_id is None or patient_id is None:
            raise ValidationError("Doctor ID and Patient ID are required")

        with self.db.transaction() as session:
            owned = session.execute(
                select(Appointment.id).where(
                    Appointment.id == appointment_id,
                    Appointment.doctor_id == doctor_id,
                    Appointment.patient_id == patient_id,
                )
            ).first()
            if owned is None:
                raise Forbidden("Not authorized to delete this appointment")

            result = session.execute(
                delete(Appointment)
                .where(Appointment.id == appointment_id)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFound("Appointment not found")

        logger.info(f"Appointment {appointment_id} deleted by doctor {doctor_id}")
