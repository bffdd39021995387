from fastapi import Depends, HTTPException, Query, Request, status
from fastapi.security import HTTPAuthorizationCredentials
from typing import Any, Dict, List, Optional
import logging
import redis

from ..core.config import settings
from ..core.database import Database, get_redis
from ..core.exceptions import Forbidden, Unauthorized
from ..core.security import security, verify_token, UserRole
from ..services.auth_service import AuthService
from ..services.patient_service import PatientService
from ..services.appointment_service import AppointmentService

logger = logging.getLogger(__name__)

# Database dependency
def get_db(request: Request) -> Database:
    """Get the database handle opened at startup."""
    return request.app.state.database

def get_auth_service(db: Database = Depends(get_db)) -> AuthService:
    return AuthService(db)

def get_patient_service(db: Database = Depends(get_db)) -> PatientService:
    return PatientService(db)

def get_appointment_service(db: Database = Depends(get_db)) -> AppointmentService:
    return AppointmentService(db)

def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    """Resolve the caller from the bearer token in the Authorization header."""
    if credentials is None:
        raise Unauthorized("Not authenticated")

    token_payload = verify_token(credentials.credentials)
    if not token_payload:
        raise Unauthorized("Invalid or expired token")

    user = auth_service.get_user(token_payload.sub)
    if not user:
        raise Unauthorized("User not found")

    return user

# Role-based access control dependencies
def require_role(allowed_roles: List[UserRole]):
    """Create a dependency that requires specific user roles."""
    def role_checker(
        current_user: Dict[str, Any] = Depends(get_current_user)
    ) -> Dict[str, Any]:
        if current_user["role"] not in allowed_roles:
            raise Forbidden(
                f"Access denied. Required roles: {[role.value for role in allowed_roles]}"
            )
        return current_user

    return role_checker

get_doctor_user = require_role([UserRole.DOCTOR])

def get_acting_doctor(
    doctor_id: Optional[int] = Query(None, alias="doctorId"),
    current_user: Dict[str, Any] = Depends(get_doctor_user)
) -> Dict[str, Any]:
    """The authenticated doctor; a doctorId query value must name the same user."""
    if doctor_id is not None and doctor_id != current_user["id"]:
        raise Forbidden("doctorId does not match the authenticated user")
    return current_user

# Rate limiting dependency
def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Basic rate limiting for authentication endpoints."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{client_ip}"

    try:
        current_requests = redis_client.get(key)
        if current_requests is None:
            redis_client.setex(key, 3600, 1)  # one hour window
            return
        if int(current_requests) >= settings.RATE_LIMIT_PER_HOUR:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later."
            )
        redis_client.incr(key)
    except redis.RedisError:
        logger.warning("Rate limiter unavailable, request allowed")
