"""
Credential hashing and token signing.

``PasswordHasher`` wraps a passlib ``CryptContext`` (bcrypt) and
``TokenIssuer`` signs/verifies JWTs with python-jose.  Both are plain
objects so the services can be built with other keys or cheaper bcrypt
rounds in tests.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

import config
from errors import InvalidTokenError

logger = logging.getLogger(__name__)


class PasswordHasher:
    def __init__(self, rounds: int = config.BCRYPT_ROUNDS):
        self.context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, password: str) -> str:
        return self.context.hash(password)

    def verify(self, password: str, hashed_password: str) -> bool:
        """Return False for a wrong password as well as for an unrecognised hash."""
        try:
            return self.context.verify(password, hashed_password)
        except (ValueError, TypeError):
            logger.warning("Stored password hash could not be identified")
            return False


class TokenIssuer:
    def __init__(
        self,
        secret_key: str = config.SECRET_KEY,
        algorithm: str = config.ALGORITHM,
        expire_minutes: int = config.ACCESS_TOKEN_EXPIRE_MINUTES,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_delta = timedelta(minutes=expire_minutes)

    def sign(self, user_id: int, expires_delta: Optional[timedelta] = None) -> str:
        now = datetime.now(timezone.utc)
        to_encode = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + (expires_delta or self.expire_delta),
            # keeps two tokens issued for the same user in the same second distinct
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> int:
        """Return the user id carried by ``token``; raise InvalidTokenError otherwise."""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
            return int(payload["sub"])
        except (JWTError, AttributeError, KeyError, TypeError, ValueError) as exc:
            raise InvalidTokenError() from exc
