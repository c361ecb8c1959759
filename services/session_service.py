# services/session_service.py
"""
Session identity - signed access tokens and current-actor resolution.

The core never holds a "current user" global: every authorization-checked
call receives the actor explicitly. This module turns a bearer token into
that actor.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from config import JWT_ALGORITHM, JWT_EXPIRE_MINUTES, JWT_SECRET
from models import User

logger = logging.getLogger(__name__)


def create_access_token(user: User, expires_minutes: int = JWT_EXPIRE_MINUTES) -> str:
     expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
     claims = {"id": user.id, "role": user.role.value, "exp": expire}
     return jwt.encode(claims, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
     """Token claims, or None when the token is invalid or expired."""
     try:
          return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
     except JWTError as e:
          logger.info(f"Rejected access token: {e}")
          return None


async def current_actor(db: AsyncSession, token: Optional[str]) -> Optional[User]:
     """Resolve the user behind a bearer token, or None."""
     if not token:
          return None
     claims = decode_access_token(token)
     if not claims or not claims.get("id"):
          return None
     return await db.get(User, claims["id"])
