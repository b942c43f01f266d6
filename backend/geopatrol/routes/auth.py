"""
GeoPatrol Backend — Auth Route Handlers
=========================================

What:  POST /api/register and POST /api/login.
Who:   Called by the courier app's sign-up and sign-in screens.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from geopatrol.dependencies import get_auth_service
from geopatrol.schemas.auth import CredentialsRequest, LoginResponse, MessageResponse
from geopatrol.schemas.report import ErrorResponse
from geopatrol.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=MessageResponse,
    responses={
        400: {"description": "Missing fields or username taken", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Register a courier",
)
async def register(
    body: Optional[CredentialsRequest] = None,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    body = body or CredentialsRequest()
    await auth_service.register(body.username, body.password)
    return MessageResponse(message="Registrasi Berhasil!")


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Missing fields", "model": ErrorResponse},
        401: {"description": "Unknown username or wrong password", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Log in and receive a bearer token",
    description="Returns a signed token valid for one hour. Send it as `Authorization: Bearer <token>`.",
)
async def login(
    body: Optional[CredentialsRequest] = None,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    body = body or CredentialsRequest()
    token = await auth_service.login(body.username, body.password)
    return LoginResponse(message="Login sukses", token=token)
