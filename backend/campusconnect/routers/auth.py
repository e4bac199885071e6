# SPDX-License-Identifier: Apache-2.0
"""Signup, email verification, login, logout."""
from fastapi import APIRouter, Depends, Request

from campusconnect.config import settings
from campusconnect.core.security import rate_limit
from campusconnect.database import Store, get_store
from campusconnect.schemas import LoginRequest, LoginResponse, SignupRequest
from campusconnect.services.identity_service import IdentityService

router = APIRouter(tags=["auth"])


@router.post("/signup", status_code=201)
@rate_limit("20/hour")
def signup(request: Request, body: SignupRequest, store: Store = Depends(get_store)):
    """Create an unverified account. The token is echoed only in development."""
    token = IdentityService(store).signup(body.name, body.email, body.password)
    response = {"message": "Account created. Please check your email to verify your account."}
    if settings.expose_verification_token:
        response["verification_token"] = token
    return response


@router.get("/verify-email/{token}")
def verify_email(token: str, store: Store = Depends(get_store)):
    IdentityService(store).verify_email(token)
    return {"message": "Email verified successfully. You can now log in."}


@router.post("/login", response_model=LoginResponse)
@rate_limit("30/hour")
def login(request: Request, body: LoginRequest, store: Store = Depends(get_store)):
    return IdentityService(store).login(body.email, body.password)


@router.post("/logout")
def logout():
    """Tokens are stateless; the client drops its copy."""
    return {"message": "Logged out successfully"}
