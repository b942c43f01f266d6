import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from geopatrol.exceptions import DuplicateUsernameError, PersistenceError
from geopatrol.models.courier import Courier

logger = logging.getLogger(__name__)


class CourierRepository:
    """Credential Store backed by the `users` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_username(self, username: str) -> Optional[Courier]:
        try:
            result = await self.db.execute(
                select(Courier).where(Courier.username == username)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Courier lookup failed: %s", type(e).__name__)
            raise PersistenceError(context={"operation": "courier_lookup", "error": str(e)})

    async def create(self, username: str, password_hash: str) -> Courier:
        """
        Insert and commit a new courier.

        The UNIQUE constraint on username decides races between two
        concurrent registrations; the loser is rolled back untouched.
        """
        courier = Courier(username=username, password_hash=password_hash)
        self.db.add(courier)
        try:
            await self.db.flush()
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateUsernameError(context={"username": username})
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Courier insert failed: %s", type(e).__name__)
            raise PersistenceError(
                message="Gagal registrasi",
                context={"operation": "courier_insert", "error": str(e)},
            )
        return courier

    async def update_password_hash(self, courier: Courier, password_hash: str) -> None:
        """Replace the stored hash of an existing courier and commit."""
        courier.password_hash = password_hash
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Courier password update failed: %s", type(e).__name__)
            raise PersistenceError(context={"operation": "courier_rehash", "error": str(e)})
