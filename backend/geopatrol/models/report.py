"""
GeoPatrol Backend — Delivery Report SQLAlchemy Model
======================================================

What:  ORM model for the `laporan_pengiriman` table (the Report Store).
Who:   ReportRepository inserts and lists rows; Alembic creates the table.

Table Design Rationale:
    - Column names match the table the mobile app's history screen was
      built against (id_kurir, no_resi, foto_path); Python attributes use
      English names
    - latitude/longitude stay strings: the device sends them as text and
      the API echoes them back unchanged
    - status is always 'delivered'; reports are immutable once created

    Composite index (id_kurir, created_at):
        The only read is "this courier's reports, newest first"
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from geopatrol.database import Base

REPORT_STATUS_DELIVERED = "delivered"

TRACKING_NUMBER_MAX_LENGTH = 100
COORDINATE_MAX_LENGTH = 50


class DeliveryReport(Base):
    """
    One delivery confirmation event.

    Lifecycle:
        Created exactly once by ReportService.submit_report();
        never updated or deleted afterwards.
    """

    __tablename__ = "laporan_pengiriman"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    courier_id: Mapped[int] = mapped_column(
        "id_kurir",
        Integer,
        ForeignKey("users.id"),
        nullable=False,
    )

    tracking_number: Mapped[str] = mapped_column("no_resi", String(TRACKING_NUMBER_MAX_LENGTH), nullable=False)

    # Blob Store reference (stored filename), not a full URL
    photo_reference: Mapped[str] = mapped_column("foto_path", String(255), nullable=False)

    latitude: Mapped[str] = mapped_column(String(COORDINATE_MAX_LENGTH), nullable=False)
    longitude: Mapped[str] = mapped_column(String(COORDINATE_MAX_LENGTH), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=REPORT_STATUS_DELIVERED,
        server_default=text(f"'{REPORT_STATUS_DELIVERED}'"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return (
            f"<DeliveryReport(id={self.id}, courier_id={self.courier_id}, "
            f"tracking_number='{self.tracking_number}')>"
        )


Index(
    "idx_laporan_kurir_created_at",
    DeliveryReport.courier_id,
    DeliveryReport.created_at,
)
