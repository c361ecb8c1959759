# routers/auth.py
"""
Account API routes: sign-up, password and wallet login, password change.

Every successful sign-up or login returns a bearer token.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_session
from dependencies import get_current_actor
from models import User
from schemas.user import (
     LoginRequest,
     PasswordChangeRequest,
     RegisterRequest,
     TokenResponse,
     UserResponse,
     WalletLoginRequest,
)
from services.account_service import AccountService
from services.session_service import create_access_token

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _token_response(user: User) -> TokenResponse:
     return TokenResponse(token=create_access_token(user), user=UserResponse.model_validate(user))


@router.post(
     "/register",
     response_model=TokenResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Create a patient or doctor account"
)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_session)):
     """
     Create an account with either a password or a wallet address.

     Patient accounts start their ledger chain with a genesis block.
     """
     try:
          user = await AccountService.create_account(
               db,
               name=body.name,
               email=body.email,
               role=body.role.value,
               password=body.password,
               wallet_address=body.wallet_address,
          )
     except ValueError as e:
          raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
     return _token_response(user)


@router.post("/login", response_model=TokenResponse, summary="Password login")
async def login(body: LoginRequest, db: AsyncSession = Depends(get_session)):
     user = await AccountService.login(db, body.email, body.password)
     return _token_response(user)


@router.post("/wallet-login", response_model=TokenResponse, summary="Wallet signature login")
async def wallet_login(body: WalletLoginRequest, db: AsyncSession = Depends(get_session)):
     user = await AccountService.login_with_wallet(db, body.email, body.message, body.signature)
     return _token_response(user)


@router.get("/me", response_model=UserResponse, summary="Current user")
async def me(actor: User = Depends(get_current_actor)):
     return actor


@router.put("/password", response_model=UserResponse, summary="Add or replace password")
async def change_password(
     body: PasswordChangeRequest,
     db: AsyncSession = Depends(get_session),
     actor: User = Depends(get_current_actor)
):
     return await AccountService.change_password(db, actor, body.current_password, body.new_password)
