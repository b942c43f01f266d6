"""
GeoPatrol Backend — Session Token Service
===========================================

What:  Issues and verifies the signed bearer tokens couriers send on
       protected routes.
How:   HS256 JWTs via python-jose. Claims: {id, username, iat, exp}.
Who:   AuthService issues; the get_current_courier dependency verifies.

Invalidation Model:
    Purely time-based. There is no server-side session table and no
    revocation list; a token is good until `exp` and useless afterwards.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from pydantic import ValidationError as PydanticValidationError

from geopatrol.exceptions import InvalidTokenError
from geopatrol.schemas.auth import TokenPayload

logger = logging.getLogger(__name__)


class TokenService:
    """Stateless signer/verifier bound to one shared secret."""

    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 60):
        self._secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def create_access_token(
        self, data: Dict[str, Any], expires_delta: Optional[timedelta] = None
    ) -> str:
        """Sign `data` with iat/exp claims added."""
        to_encode = data.copy()
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta if expires_delta is not None else timedelta(minutes=self.expire_minutes))
        to_encode.update({"iat": now, "exp": expire})
        return jwt.encode(to_encode, self._secret, algorithm=self.algorithm)

    def issue_for(self, courier_id: int, username: str) -> str:
        return self.create_access_token({"id": courier_id, "username": username})

    def verify(self, token: str) -> TokenPayload:
        """
        Check signature and expiry, then validate the claim shape.

        Raises:
            InvalidTokenError: bad signature, malformed, expired, or missing claims.
        """
        try:
            claims = jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except JWTError as e:
            # Expired tokens are routine; no need for more than debug
            logger.debug("Token rejected: %s", type(e).__name__)
            raise InvalidTokenError(context={"reason": type(e).__name__})

        try:
            return TokenPayload.model_validate(claims)
        except PydanticValidationError:
            raise InvalidTokenError(context={"reason": "payload"})
