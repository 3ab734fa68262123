"""
Authentication routes for DYHE Delivery backend.
Handles login, registration, token refresh and the current-user profile.
"""
from fastapi import APIRouter, Depends

from database import get_db
from dependencies import get_current_user
from models.schemas import LoginRequest, RegisterRequest, RefreshTokenRequest
from services.auth_service import AuthService

router = APIRouter()


def get_auth_service(db=Depends(get_db)) -> AuthService:
    return AuthService(db)


# ============ AUTH ROUTES ============

@router.post("/auth/login")
async def login(request: LoginRequest, service: AuthService = Depends(get_auth_service)):
    """Login with email or username and password"""
    return await service.login(request)


@router.post("/auth/register", status_code=201)
async def register(request: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    """Register a new user account and sign it in"""
    return await service.register(request)


@router.post("/auth/refresh")
async def refresh(request: RefreshTokenRequest, service: AuthService = Depends(get_auth_service)):
    """Exchange a refresh token for a new token pair"""
    return await service.refresh_token(request.refresh_token)


@router.post("/auth/logout")
async def logout(
    user: dict = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service)
):
    """Logout (tokens are stateless; the client discards them)"""
    return await service.logout()


@router.post("/auth/profile")
async def profile(user: dict = Depends(get_current_user)):
    """Get the authenticated user's profile"""
    return user


@router.get("/auth/me")
async def get_me(user: dict = Depends(get_current_user)):
    """Get current authenticated user"""
    return user
