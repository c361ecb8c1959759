# dependencies.py
"""
Shared FastAPI dependencies: bearer-token auth and the current actor.
"""
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_session
from models import User
from services.session_service import current_actor


def verify_token(request: Request) -> str:
     auth = request.headers.get("Authorization")
     if not auth or not auth.startswith("Bearer "):
          raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
     return auth.split(" ", 1)[1]


async def get_current_actor(
     token: str = Depends(verify_token),
     db: AsyncSession = Depends(get_session),
) -> User:
     actor = await current_actor(db, token)
     if actor is None:
          raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
     return actor
