"""Administrator login and token verification."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
import jwt
from sqlalchemy import select

from storefront.config import JWT_SECRET, JWT_TTL_SECONDS
from storefront.db.postgres_client import PostgresConnection
from storefront.errors import AuthenticationFailed, InvalidToken
from storefront.models import User

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


class AuthService:
    def __init__(self, db: PostgresConnection, secret: str | None = None, ttl_seconds: int = JWT_TTL_SECONDS):
        self.db = db
        self.secret = secret or JWT_SECRET
        if not self.secret:
            raise RuntimeError("JWT_SECRET is not set; refusing to issue tokens")
        self.ttl_seconds = ttl_seconds

    def login(self, username: str, password: str) -> str:
        """Check credentials and issue a signed token."""
        with self.db.transaction() as session:
            user = session.execute(select(User).where(User.username == username)).scalar_one_or_none()

        if user is None or not check_password(password or "", user.password):
            logger.warning(f"Failed login for {username}")
            raise AuthenticationFailed("Invalid username or password")

        payload = {
            "id": user.id,
            "role": user.role,
            "exp": datetime.now(timezone.utc) + timedelta(seconds=self.ttl_seconds),
        }
        return jwt.encode(payload, self.secret, algorithm=JWT_ALGORITHM)

    def verify_token(self, token: str) -> dict[str, Any]:
        try:
            return jwt.decode(token, self.secret, algorithms=[JWT_ALGORITHM])
        except jwt.PyJWTError as e:
            raise InvalidToken("Invalid Token") from e

    def verify_header(self, authorization: str | None) -> dict[str, Any]:
        """Verify a ``Bearer <token>`` Authorization header value."""
        if not authorization:
            raise AuthenticationFailed("Unauthorized")
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token:
            raise InvalidToken("Invalid Token")
        return self.verify_token(token.strip())

    def create_user(self, username: str, password: str, role: str = "admin") -> int:
        with self.db.transaction() as session:
            existing = session.execute(select(User).where(User.username == username)).scalar_one_or_none()
            if existing is not None:
                return existing.id
            user = User(username=username, password=hash_password(password), role=role)
            session.add(user)
            session.flush()
            logger.info(f"Created {role} user {username}")
            return user.id
