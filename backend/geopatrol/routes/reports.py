"""
GeoPatrol Backend — Delivery Report Route Handlers
====================================================

What:  POST /api/laporan (submit a report) and GET /api/laporan (history).
Who:   Called by the courier app after a delivery and on the history screen.

Request Flow (POST):
    1. get_current_courier verifies the bearer token (403 otherwise)
    2. Multipart fields no_resi, latitude, longitude and file foto are read
    3. ReportService validates, stores the photo, inserts the row
    4. 200 {"message": "Laporan berhasil disimpan"}

All form fields are optional at the FastAPI level so that a missing field
produces the app's own 400 message instead of a 422.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from geopatrol.dependencies import get_current_courier, get_report_service
from geopatrol.schemas.auth import MessageResponse, TokenPayload
from geopatrol.schemas.report import ErrorResponse, ReportResponse
from geopatrol.services.report_service import ReportService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Reports"])


@router.post(
    "/laporan",
    response_model=MessageResponse,
    responses={
        400: {"description": "Missing fields or photo", "model": ErrorResponse},
        403: {"description": "Missing or invalid token", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Submit a delivery report",
)
async def submit_report(
    courier: TokenPayload = Depends(get_current_courier),
    no_resi: Optional[str] = Form(default=None, description="Tracking number"),
    latitude: Optional[str] = Form(default=None),
    longitude: Optional[str] = Form(default=None),
    foto: Optional[UploadFile] = File(default=None, description="Proof-of-delivery photo"),
    report_service: ReportService = Depends(get_report_service),
) -> MessageResponse:
    content = await foto.read() if foto is not None else None
    filename = foto.filename if foto is not None else None

    logger.info(
        "Received report from courier %s: filename=%s, size=%d bytes",
        courier.id,
        filename or "none",
        len(content or b""),
    )

    try:
        await report_service.submit_report(
            courier_id=courier.id,
            tracking_number=no_resi,
            latitude=latitude,
            longitude=longitude,
            photo_filename=filename,
            photo_bytes=content,
        )
    finally:
        if foto is not None:
            await foto.close()

    return MessageResponse(message="Laporan berhasil disimpan")


@router.get(
    "/laporan",
    response_model=List[ReportResponse],
    responses={
        403: {"description": "Missing or invalid token", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="List the caller's delivery reports (newest first)",
)
async def list_reports(
    courier: TokenPayload = Depends(get_current_courier),
    report_service: ReportService = Depends(get_report_service),
) -> List[ReportResponse]:
    return await report_service.list_reports(courier.id)
