"""
GeoPatrol Backend — Auth Service (Registration & Login)
=========================================================

What:  Registers couriers and authenticates login attempts.
How:   bcrypt for password hashing, CourierRepository for storage,
       TokenService for issuing session tokens.
Who:   Called by the /api/register and /api/login route handlers.

Workflow (POST /api/register):
    validate → reject taken username → hash (worker thread) → insert

Workflow (POST /api/login):
    validate → look up courier → bcrypt compare (worker thread)
    → rehash if the cost changed → issue token

Timing:
    bcrypt.checkpw compares in constant time. When the username is unknown
    we still run one comparison against a dummy hash built at startup with
    the configured cost, so "no such user" and "wrong password" take the
    same time to answer. Hashes stored at an older cost are upgraded on the
    next successful login.
"""

import asyncio
import logging
from typing import Optional

import bcrypt
from sqlalchemy.ext.asyncio import AsyncSession

from geopatrol.exceptions import (
    DuplicateUsernameError,
    InvalidCredentialsError,
    InvalidInputError,
    PersistenceError,
    UserNotFoundError,
)
from geopatrol.models.courier import USERNAME_MAX_LENGTH, Courier
from geopatrol.repositories.courier_repository import CourierRepository
from geopatrol.services.token_service import TokenService

logger = logging.getLogger(__name__)

CREDENTIALS_REQUIRED_MESSAGE = "Username dan Password wajib diisi!"
UNIFORM_LOGIN_ERROR_MESSAGE = "Username atau Password salah!"

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """
    bcrypt wrapper that keeps the CPU-heavy work off the event loop.

    The cost factor is embedded in every hash, so raising `rounds` later
    does not invalidate existing hashes; `needs_rehash` tells the login
    path when a stored hash should be upgraded to the current cost.

    The dummy hash used by `burn` is built here, once, at the configured
    cost. A login for an unknown username then does exactly the bcrypt work
    of a wrong-password login: one checkpw, no hashpw.
    """

    _DUMMY_PASSWORD = b"geopatrol-timing-equalizer"

    def __init__(self, rounds: int = 10):
        self.rounds = rounds
        self._dummy_hash: bytes = bcrypt.hashpw(self._DUMMY_PASSWORD, bcrypt.gensalt(rounds=rounds))

    @staticmethod
    def _encode(password: str) -> bytes:
        return password.encode("utf-8")[:BCRYPT_MAX_BYTES]

    @staticmethod
    def cost_of(password_hash: str) -> Optional[int]:
        """Work factor of a `$2b$<cost>$...` hash, or None if unparseable."""
        parts = password_hash.split("$")
        if len(parts) < 4 or not parts[2].isdigit():
            return None
        return int(parts[2])

    def needs_rehash(self, password_hash: str) -> bool:
        cost = self.cost_of(password_hash)
        return cost is not None and cost != self.rounds

    def _hash_sync(self, password: str) -> str:
        return bcrypt.hashpw(self._encode(password), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    async def hash(self, password: str) -> str:
        return await asyncio.to_thread(self._hash_sync, password)

    async def verify(self, password: str, password_hash: str) -> bool:
        try:
            return await asyncio.to_thread(
                bcrypt.checkpw, self._encode(password), password_hash.encode("utf-8")
            )
        except ValueError:
            # Stored value is not a bcrypt hash
            logger.error("Stored password hash has an invalid format")
            return False

    async def burn(self, password: str) -> None:
        """Spend one comparison's worth of time; the result is discarded."""
        await asyncio.to_thread(bcrypt.checkpw, self._encode(password), self._dummy_hash)


class AuthService:
    """
    Business logic for courier credentials.

    Stateless apart from the injected handles; one instance per request.
    """

    def __init__(
        self,
        db: AsyncSession,
        token_service: TokenService,
        hasher: PasswordHasher,
        uniform_login_error: bool = False,
    ):
        self.couriers = CourierRepository(db)
        self.token_service = token_service
        self.hasher = hasher
        self.uniform_login_error = uniform_login_error

    @staticmethod
    def _require_credentials(username: Optional[str], password: Optional[str]) -> None:
        if not username or not password:
            raise InvalidInputError(message=CREDENTIALS_REQUIRED_MESSAGE)

    async def register(self, username: Optional[str], password: Optional[str]) -> Courier:
        """
        Create a new courier.

        Raises:
            InvalidInputError: username or password empty, or username too long
            DuplicateUsernameError: username already registered
            PersistenceError: datastore failure
        """
        self._require_credentials(username, password)
        if len(username) > USERNAME_MAX_LENGTH:
            raise InvalidInputError(
                message=f"Username maksimal {USERNAME_MAX_LENGTH} karakter!",
                field="username",
            )

        # Fast path; the UNIQUE constraint still decides concurrent races
        if await self.couriers.get_by_username(username) is not None:
            raise DuplicateUsernameError(context={"username": username})

        password_hash = await self.hasher.hash(password)
        courier = await self.couriers.create(username=username, password_hash=password_hash)
        logger.info("Courier registered: id=%s username=%s", courier.id, courier.username)
        return courier

    async def login(self, username: Optional[str], password: Optional[str]) -> str:
        """
        Authenticate and return a signed session token (1 hour).

        Raises:
            InvalidInputError: username or password empty
            UserNotFoundError: no courier with that username
            InvalidCredentialsError: password does not match
            PersistenceError: datastore failure
        """
        self._require_credentials(username, password)

        courier = await self.couriers.get_by_username(username)
        if courier is None:
            await self.hasher.burn(password)
            logger.info("Login rejected: unknown username")
            if self.uniform_login_error:
                raise InvalidCredentialsError(message=UNIFORM_LOGIN_ERROR_MESSAGE)
            raise UserNotFoundError()

        if not await self.hasher.verify(password, courier.password_hash):
            logger.info("Login rejected: wrong password for courier id=%s", courier.id)
            if self.uniform_login_error:
                raise InvalidCredentialsError(message=UNIFORM_LOGIN_ERROR_MESSAGE)
            raise InvalidCredentialsError()

        # Read before the upgrade: a rolled-back session expires the instance
        courier_id, courier_username = courier.id, courier.username
        if self.hasher.needs_rehash(courier.password_hash):
            await self._upgrade_hash(courier, password)

        logger.info("Login succeeded: courier id=%s", courier_id)
        return self.token_service.issue_for(courier_id, courier_username)

    async def _upgrade_hash(self, courier: Courier, password: str) -> None:
        """
        Re-hash at the configured cost after BCRYPT_ROUNDS changed.

        Keeps stored hashes at the same cost as the dummy hash, so the
        unknown-user and wrong-password paths stay equally slow. A failed
        upgrade is logged and retried on the next login; it never fails
        the login itself.
        """
        courier_id = courier.id
        new_hash = await self.hasher.hash(password)
        try:
            await self.couriers.update_password_hash(courier, new_hash)
        except PersistenceError as e:
            logger.warning("Password rehash failed for courier id=%s: %s", courier_id, e.context)
            return
        logger.info("Password hash upgraded to cost %d for courier id=%s", self.hasher.rounds, courier_id)
