# schemas/record.py
"""
Pydantic schemas for clinical records.
"""
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict
from enum import Enum


class RecordTypeEnum(str, Enum):
     REPORT = "report"
     UPDATE = "update"


class DoctorUpdateCreate(BaseModel):
     """Request body for POST /api/records/updates."""
     patient_id: str = Field(..., description="Patient the update is about")
     note: str = Field(..., min_length=1, description="Clinical note; the first 120 characters become the title")

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "patient_id": "3f0b6c1e-0d7e-4a52-9a3c-2f1e8b7d9c10",
                    "note": "Follow-up in 2 weeks",
               }
          }
     )


class RecordResponse(BaseModel):
     id: str
     patient_id: str
     author_id: str
     author_name: str
     type: RecordTypeEnum
     title: str
     file_id: Optional[str] = None
     created_at: int

     model_config = ConfigDict(from_attributes=True)
