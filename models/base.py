# models/base.py
import re
import time
import uuid

from sqlalchemy.orm import DeclarativeBase, declared_attr


def new_id() -> str:
     """Primary keys are random UUID4 strings."""
     return str(uuid.uuid4())


def now_millis() -> int:
     """Current time as integer epoch milliseconds (the ledger's clock)."""
     return int(time.time() * 1000)


class Base(DeclarativeBase):
     """
     Base class for all SQLAlchemy models.
     Provides common configuration and mixins.
     """

     @declared_attr.directive
     def __tablename__(cls) -> str:
          """
          Automatically generate table name from class name.
          Example: RecordItem -> record_items
          """
          name = re.sub(r'(?<!^)(?=[A-Z])', '_', cls.__name__).lower()
          # Pluralize (simple version)
          if name.endswith('y'):
               return name[:-1] + 'ies'
          elif name.endswith('s'):
               return name + 'es'
          return name + 's'
