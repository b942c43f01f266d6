"""
GeoPatrol Backend — Report Service (Business Logic Orchestrator)
==================================================================

What:  Records delivery reports and returns a courier's history.
How:   Composes the BlobStore (photo bytes) and ReportRepository (rows).
Who:   Called by the /api/laporan route handlers with an already-verified
       courier id.

Orchestration Flow (POST /api/laporan):
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────┐
    │ Validate │───▶│ Photo check │───▶│  Blob Store  │───▶│  Insert  │
    │  fields  │    │ (present,   │    │  (save)      │    │  (DB)    │
    └──────────┘    │  size)      │    └──────────────┘    └──────────┘
                    └─────────────┘

    The blob write and the row insert are not one transaction. If the
    insert fails the freshly written photo is deleted again; if that delete
    also fails the photo is left orphaned and the request still fails with
    a PersistenceError.
"""

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from geopatrol.exceptions import InvalidInputError, MissingPhotoError, PersistenceError
from geopatrol.models.report import (
    COORDINATE_MAX_LENGTH,
    TRACKING_NUMBER_MAX_LENGTH,
    DeliveryReport,
)
from geopatrol.repositories.report_repository import ReportRepository
from geopatrol.schemas.report import ReportResponse
from geopatrol.services.blob_base import BlobStore

logger = logging.getLogger(__name__)


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class ReportService:
    """
    Business logic layer for delivery reports.

    Error Handling Strategy:
        Validation failures raise before any store is touched. Store
        failures arrive as PersistenceError (or its FileStorageError
        subclass) and propagate to the global handler unchanged.
    """

    def __init__(self, db: AsyncSession, blob_store: BlobStore, max_upload_size: int):
        self.reports = ReportRepository(db)
        self.blob_store = blob_store
        self.max_upload_size = max_upload_size

    async def submit_report(
        self,
        courier_id: int,
        tracking_number: Optional[str],
        latitude: Optional[str],
        longitude: Optional[str],
        photo_filename: Optional[str],
        photo_bytes: Optional[bytes],
    ) -> DeliveryReport:
        """
        Validate, store the photo, and insert the report (status 'delivered').

        Raises:
            InvalidInputError: tracking number or a coordinate missing/blank or
                               longer than its column,
                               or the photo exceeds max_upload_size
            MissingPhotoError: no photo, or an empty one
            PersistenceError:  blob write or insert failed
        """
        # ── Step 1: Text fields ───────────────────────────────────────────
        missing = [
            name
            for name, value in (
                ("no_resi", tracking_number),
                ("latitude", latitude),
                ("longitude", longitude),
            )
            if _blank(value)
        ]
        if missing:
            raise InvalidInputError(context={"missing": missing})

        for name, value, limit in (
            ("no_resi", tracking_number, TRACKING_NUMBER_MAX_LENGTH),
            ("latitude", latitude, COORDINATE_MAX_LENGTH),
            ("longitude", longitude, COORDINATE_MAX_LENGTH),
        ):
            if len(value.strip()) > limit:
                raise InvalidInputError(
                    message=f"{name} maksimal {limit} karakter!",
                    field=name,
                    context={"length": len(value.strip())},
                )

        # ── Step 2: Photo ─────────────────────────────────────────────────
        if not photo_bytes:
            raise MissingPhotoError()
        if len(photo_bytes) > self.max_upload_size:
            max_mb = self.max_upload_size / (1024 * 1024)
            raise InvalidInputError(
                message=f"Ukuran foto melebihi batas {max_mb:.0f}MB!",
                field="foto",
                context={"size": len(photo_bytes), "max": self.max_upload_size},
            )

        # ── Step 3: Blob Store ────────────────────────────────────────────
        reference = await self.blob_store.save(photo_filename or "", photo_bytes)

        # ── Step 4: Report row ────────────────────────────────────────────
        try:
            report = await self.reports.create(
                courier_id=courier_id,
                tracking_number=tracking_number.strip(),
                photo_reference=reference,
                latitude=latitude.strip(),
                longitude=longitude.strip(),
            )
        except PersistenceError:
            await self.blob_store.delete(reference)
            raise

        logger.info(
            "Report %s recorded for courier %s (no_resi=%s)",
            report.id,
            courier_id,
            report.tracking_number,
        )
        return report

    async def list_reports(self, courier_id: int) -> List[ReportResponse]:
        """
        All of one courier's reports, newest first; [] when there are none.

        Raises:
            PersistenceError: query failed
        """
        rows = await self.reports.list_by_courier(courier_id)
        return [self.to_response(row) for row in rows]

    def to_response(self, report: DeliveryReport) -> ReportResponse:
        return ReportResponse(
            id=report.id,
            id_kurir=report.courier_id,
            no_resi=report.tracking_number,
            foto_path=report.photo_reference,
            foto_url=self.blob_store.url_for(report.photo_reference),
            latitude=report.latitude,
            longitude=report.longitude,
            status=report.status,
            created_at=report.created_at,
        )
