"""
Authentication API endpoints for registration, login, token refresh and logout.
Provides JWT-based authentication with role-based access control.
"""

from fastapi import APIRouter, Depends, Request, status
from realty_api.models.user import User
from realty_api.services.auth import AuthService
from realty_api.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    RefreshTokenRequest,
    TokenResponse
)
from realty_api.utils.dependencies import (
    get_auth_service,
    get_current_user,
    get_bearer_token
)
from realty_api.utils.responses import success_response
from realty_api.utils.throttling import auth_throttle


router = APIRouter(prefix="/auth", tags=["Authentication"])


def _token_payload(user: User, access_token: str, refresh_token: str) -> dict:
    tokens = TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=AuthService.access_token_lifetime_seconds()
    )
    return {"user": user.to_dict(), **tokens.model_dump()}


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    summary="Register account",
    description="Create a user or agent account and return a token pair",
    dependencies=[Depends(auth_throttle)]
)
async def register(
    data: RegisterRequest,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Register a new account.

    Raises:
        DuplicateResourceError: If the email is already registered (409)
    """
    user, access_token, refresh_token = await auth_service.register(data, request)
    return success_response("User registered successfully", _token_payload(user, access_token, refresh_token))


@router.post(
    "/login",
    summary="User login",
    description="Authenticate user with email and password, returns JWT tokens",
    dependencies=[Depends(auth_throttle)]
)
async def login(
    login_data: LoginRequest,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Authenticate user and return JWT tokens.

    Raises:
        InvalidCredentialsError: If credentials are invalid
        InactiveUserError: If user account is inactive
    """
    user, access_token, refresh_token = await auth_service.login(
        email=login_data.email,
        password=login_data.password,
        request=request
    )
    return success_response("Login successful", _token_payload(user, access_token, refresh_token))


@router.post("/refresh", summary="Refresh tokens")
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    access_token, new_refresh_token = await auth_service.refresh_access_token(refresh_data.refresh_token)
    tokens = TokenResponse(
        access_token=access_token,
        refresh_token=new_refresh_token,
        expires_in=AuthService.access_token_lifetime_seconds()
    )
    return success_response("Token refreshed successfully", tokens.model_dump())


@router.get("/me", summary="Get current user")
async def get_me(current_user: User = Depends(get_current_user)):
    return success_response("Current user retrieved", current_user.to_dict())


@router.post(
    "/logout",
    summary="User logout",
    description="Revoke the access token used for this request"
)
async def logout(
    request: Request,
    token: str = Depends(get_bearer_token),
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
):
    await auth_service.logout(token, current_user, request)
    return success_response("Logged out successfully")
