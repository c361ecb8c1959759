# models/__init__.py
from .base import Base, new_id, now_millis
from .user import User, UserRole
from .permission import Permission
from .record_item import RecordItem, RecordType
from .block import Block, PayloadType

__all__ = [
     "Base",
     "new_id",
     "now_millis",
     "User",
     "UserRole",
     "Permission",
     "RecordItem",
     "RecordType",
     "Block",
     "PayloadType",
]
