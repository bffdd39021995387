import logging

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from medpractice.core.exceptions import InternalError, ValidationError
from medpractice.models.assignment import DoctorPatientAssignment
from medpractice.models.patient import Patient
from medpractice.models.user import User
from medpractice.core.security import UserRole


def _doctor_and_patient(session):
    doctor = User(email="doc@example.com", password_hash="x", full_name="Doc", role=UserRole.DOCTOR)
    patient = Patient(full_name="Pat Smith")
    session.add_all([doctor, patient])
    session.flush()
    return doctor.id, patient.id


class TestDatabase:

    def test_execute_returns_records(self, database):
        rows = database.execute("SELECT 1 AS one, 'a' AS letter")
        assert rows == [{"one": 1, "letter": "a"}]

    def test_execute_without_rows(self, database, count_rows):
        rows = database.execute(
            "INSERT INTO patients (full_name) VALUES (:name)", {"name": "Pat Smith"}
        )
        assert rows == []
        assert count_rows("patients") == 1

    def test_execute_error_is_internal(self, database):
        with pytest.raises(InternalError):
            database.execute("SELECT * FROM no_such_table")

    def test_transaction_commits(self, database, count_rows):
        with database.transaction() as session:
            session.add(Patient(full_name="Pat Smith"))

        assert count_rows("patients") == 1

    def test_transaction_rolls_back_service_error(self, database, count_rows):
        """A service error rolls the unit back and reaches the caller unchanged."""
        with pytest.raises(ValidationError):
            with database.transaction() as session:
                session.add(Patient(full_name="Pat Smith"))
                session.flush()
                raise ValidationError("stop")

        assert count_rows("patients") == 0

    def test_transaction_database_error_is_internal(self, database, count_rows):
        with pytest.raises(InternalError) as exc_info:
            with database.transaction() as session:
                session.add(Patient(full_name="Pat Smith"))
                session.flush()
                session.add(Patient(full_name=None))
                session.flush()

        assert isinstance(exc_info.value.__cause__, SQLAlchemyError)
        assert count_rows("patients") == 0

    def test_failed_rollback_keeps_original_error(self, database, monkeypatch, caplog):
        def failing_rollback(self):
            raise SQLAlchemyError("connection lost")

        monkeypatch.setattr(Session, "rollback", failing_rollback)

        with caplog.at_level(logging.ERROR, logger="medpractice.core.database"):
            with pytest.raises(ValidationError):
                with database.transaction():
                    raise ValidationError("original")

        assert "Rollback failed" in caplog.text

    def test_one_active_assignment_per_pair(self, database, count_rows):
        """A second active assignment for the same pair is refused."""
        with database.transaction() as session:
            doctor_id, patient_id = _doctor_and_patient(session)
            session.add(DoctorPatientAssignment(doctor_id=doctor_id, patient_id=patient_id))

        with pytest.raises(InternalError):
            with database.transaction() as session:
                session.add(DoctorPatientAssignment(doctor_id=doctor_id, patient_id=patient_id))

        # Inactive history rows do not count
        with database.transaction() as session:
            session.add(DoctorPatientAssignment(
                doctor_id=doctor_id, patient_id=patient_id, status="inactive"
            ))

        assert count_rows("doctor_patient_assignments") == 2


class TestHealth:

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "connected"

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["endpoints"]["patients"] == "/api/patients"

    def test_unknown_route(self, client):
        response = client.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.json()["path"] == "/api/nothing-here"
