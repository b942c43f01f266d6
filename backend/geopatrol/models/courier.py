"""
GeoPatrol Backend — Courier SQLAlchemy Model
==============================================

What:  ORM model for the `users` table (the Credential Store).
Who:   CourierRepository reads and writes it; Alembic creates it.

Table Design Rationale:
    - Integer autoincrement id: referenced by laporan_pengiriman.id_kurir
    - username: UNIQUE constraint is the real guard against duplicates;
      the service-level pre-check only produces a nicer error sooner
    - password_hash: bcrypt output ($2b$10$...), 60 chars; 255 leaves room
      for a future scheme change
    - created_at: UTC with timezone
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from geopatrol.database import Base

USERNAME_MAX_LENGTH = 50


class Courier(Base):
    """
    A registered courier.

    Rows are inserted at registration; only password_hash is ever updated
    afterwards (rehash when the bcrypt cost changes).
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    username: Mapped[str] = mapped_column(
        String(USERNAME_MAX_LENGTH),
        nullable=False,
        unique=True,
        comment="Login name; globally unique",
    )

    # Never the plaintext; bcrypt embeds salt and cost in this string
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash (salt and cost factor embedded)",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<Courier(id={self.id}, username='{self.username}')>"
