import logging
from typing import List

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from geopatrol.exceptions import PersistenceError
from geopatrol.models.report import REPORT_STATUS_DELIVERED, DeliveryReport

logger = logging.getLogger(__name__)


class ReportRepository:
    """Report Store backed by the `laporan_pengiriman` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        courier_id: int,
        tracking_number: str,
        photo_reference: str,
        latitude: str,
        longitude: str,
    ) -> DeliveryReport:
        report = DeliveryReport(
            courier_id=courier_id,
            tracking_number=tracking_number,
            photo_reference=photo_reference,
            latitude=latitude,
            longitude=longitude,
            status=REPORT_STATUS_DELIVERED,
        )
        self.db.add(report)
        try:
            await self.db.flush()
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Report insert failed: %s", type(e).__name__)
            raise PersistenceError(
                message="Gagal simpan laporan",
                context={"operation": "report_insert", "error": str(e)},
            )
        return report

    async def list_by_courier(self, courier_id: int) -> List[DeliveryReport]:
        """
        All reports of one courier, newest first.

        Query plan:
            SELECT * FROM laporan_pengiriman WHERE id_kurir = :id
            ORDER BY created_at DESC, id DESC
            → idx_laporan_kurir_created_at; id breaks same-timestamp ties
        """
        try:
            result = await self.db.execute(
                select(DeliveryReport)
                .where(DeliveryReport.courier_id == courier_id)
                .order_by(desc(DeliveryReport.created_at), desc(DeliveryReport.id))
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Report listing failed for courier %s: %s", courier_id, type(e).__name__)
            raise PersistenceError(
                message="Gagal ambil data",
                context={"operation": "report_list", "error": str(e)},
            )
