from fastapi import APIRouter, Depends, status
from typing import Any, Dict

from ...api.deps import get_auth_service, get_current_user, rate_limit_check
from ...services.auth_service import AuthService
from ...schemas.auth import UserLogin, UserRegister, TokenResponse, UserResponse

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def signup(
    user_data: UserRegister,
    auth_service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_check)
):
    """Register a new doctor or patient."""
    user = auth_service.sign_up(
        email=user_data.email,
        password=user_data.password,
        name=user_data.name,
        role=user_data.role,
    )
    return UserResponse.model_validate(user)

@router.post("/login", response_model=TokenResponse)
def login(
    login_data: UserLogin,
    auth_service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_check)
):
    """Authenticate user and return an access token."""
    return auth_service.log_in(login_data.email, login_data.password)

@router.get("/me", response_model=UserResponse)
def get_current_user_info(
    current_user: Dict[str, Any] = Depends(get_current_user)
):
    """Get current user information."""
    return UserResponse.model_validate(current_user)
