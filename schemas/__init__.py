# schemas/__init__.py
from .user import (
     RoleEnum,
     RegisterRequest,
     LoginRequest,
     WalletLoginRequest,
     PasswordChangeRequest,
     UserResponse,
     TokenResponse,
)
from .permission import PermissionResponse, RevokeResponse, CounterpartListResponse
from .record import RecordTypeEnum, DoctorUpdateCreate, RecordResponse
from .ledger import PayloadTypeEnum, BlockResponse, ChainFailureResponse, ChainVerificationResponse

__all__ = [
     "RoleEnum",
     "RegisterRequest",
     "LoginRequest",
     "WalletLoginRequest",
     "PasswordChangeRequest",
     "UserResponse",
     "TokenResponse",
     "PermissionResponse",
     "RevokeResponse",
     "CounterpartListResponse",
     "RecordTypeEnum",
     "DoctorUpdateCreate",
     "RecordResponse",
     "PayloadTypeEnum",
     "BlockResponse",
     "ChainFailureResponse",
     "ChainVerificationResponse",
]
