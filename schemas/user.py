# schemas/user.py
"""
Pydantic schemas for account and authentication API.
"""
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, model_validator
from enum import Enum


class RoleEnum(str, Enum):
     """Account roles."""
     PATIENT = "patient"
     DOCTOR = "doctor"


class RegisterRequest(BaseModel):
     """Request body for POST /api/auth/register."""
     name: str = Field(..., min_length=1, max_length=200, description="Display name")
     email: str = Field(..., min_length=3, max_length=255, description="Unique email")
     role: RoleEnum = Field(..., description="patient or doctor")
     password: Optional[str] = Field(None, min_length=8, description="Password (omit for wallet accounts)")
     wallet_address: Optional[str] = Field(None, description="Wallet address (omit for password accounts)")

     @model_validator(mode="after")
     def one_credential(self):
          if (self.password is None) == (self.wallet_address is None):
               raise ValueError("Provide either a password or a wallet address")
          return self

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "name": "Ada Patient",
                    "email": "ada@example.com",
                    "role": "patient",
                    "password": "correct horse battery",
               }
          }
     )


class LoginRequest(BaseModel):
     email: str
     password: str


class WalletLoginRequest(BaseModel):
     """Request body for POST /api/auth/wallet-login."""
     email: str
     message: str = Field(..., description="The exact message that was signed")
     signature: str = Field(..., description="Hex personal_sign signature")

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "email": "ada@example.com",
                    "message": "Sign this message to authenticate with MedChain as patient\nTimestamp: 1760659200000",
                    "signature": "0x5f1c...1b",
               }
          }
     )


class PasswordChangeRequest(BaseModel):
     current_password: Optional[str] = None
     new_password: str = Field(..., min_length=8)


class UserResponse(BaseModel):
     """Public view of a user; never includes authentication material."""
     id: str
     name: str
     email: str
     role: RoleEnum
     wallet_address: Optional[str] = None
     created_at: int

     model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
     token: str
     user: UserResponse
