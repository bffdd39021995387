from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from typing import Any, Dict, Optional
import logging

from ..core.database import Database, as_dict
from ..core.exceptions import Conflict, Unauthorized, ValidationError
from ..core.security import UserRole, create_access_token, get_password_hash, verify_password
from ..models.patient import Patient
from ..models.user import User

logger = logging.getLogger(__name__)


def _public(user: Dict[str, Any]) -> Dict[str, Any]:
    """Drop the password hash from a user record."""
    return {key: value for key, value in user.items() if key != "password_hash"}


class AuthService:
    def __init__(self, db: Database):
        self.db = db

    def sign_up(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        role: str = UserRole.PATIENT.value,
    ) -> Dict[str, Any]:
        """Register a new user."""
        try:
            user_role = UserRole(role)
        except ValueError:
            raise ValidationError(
                f"Invalid role. Allowed roles: {[r.value for r in UserRole]}"
            )

        if not email or not password:
            raise ValidationError("Email and password are required")

        new_user = User(
            email=email,
            password_hash=get_password_hash(password),
            full_name=name or email.split("@")[0],
            role=user_role,
        )

        with self.db.transaction() as session:
            session.add(new_user)
            # The unique index on email decides duplicates; there is no read first
            try:
                session.flush()
            except IntegrityError as exc:
                raise Conflict("User already exists") from exc

            if user_role == UserRole.PATIENT:
                self._link_patient_records(session, new_user)
            session.refresh(new_user)

        logger.info(f"Registered {user_role.value} user {new_user.id}")
        return _public(as_dict(new_user))

    def log_in(self, email: str, password: str) -> Dict[str, Any]:
        """Authenticate user and return an access token."""
        rows = self.db.execute(
            select(User.__table__).where(User.email == email)
        )
        user = rows[0] if rows else None

        # Same answer for unknown email and wrong password
        if not user or not verify_password(password, user["password_hash"]):
            logger.warning("Refused login attempt")
            raise Unauthorized("Invalid credentials")

        token = create_access_token(user["id"], user["email"], user["role"])
        return {
            "access_token": token.access_token,
            "token_type": token.token_type,
            "expires_in": token.expires_in,
            "user": _public(user),
        }

    def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        rows = self.db.execute(
            select(User.__table__).where(User.id == user_id)
        )
        return _public(rows[0]) if rows else None

    def _link_patient_records(self, session, user: User) -> None:
        """Attach unclaimed patient records carrying this email to the user."""
        session.execute(
            update(Patient)
            .where(Patient.email == user.email, Patient.user_id.is_(None))
            .values(user_id=user.id)
            .execution_options(synchronize_session=False)
        )
