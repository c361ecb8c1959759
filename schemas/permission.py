# schemas/permission.py
"""
Pydantic schemas for access grants.
"""
from typing import List
from pydantic import BaseModel, ConfigDict

from .user import UserResponse


class PermissionResponse(BaseModel):
     id: str
     patient_id: str
     doctor_id: str
     granted_at: int

     model_config = ConfigDict(from_attributes=True)


class RevokeResponse(BaseModel):
     patient_id: str
     doctor_id: str
     removed: bool


class CounterpartListResponse(BaseModel):
     """Doctors a patient granted, or patients who granted a doctor."""
     users: List[UserResponse]
