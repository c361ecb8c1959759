# models/user.py
import enum
from sqlalchemy import Column, String, BigInteger, Enum
from .base import Base, new_id, now_millis


class UserRole(str, enum.Enum):
     """Account roles."""
     PATIENT = "patient"
     DOCTOR = "doctor"


class User(Base):
     """
     User model - identity record for patients and doctors.

     Authentication material is either a password salt+hash pair or a
     wallet address (signature login). Users are never deleted; the only
     permitted mutation is replacing authentication material.
     """
     __tablename__ = "users"

     id = Column(String(36), primary_key=True, default=new_id)
     name = Column(String(200), nullable=False)
     email = Column(String(255), unique=True, nullable=False, index=True)
     role = Column(
          Enum(
               UserRole,
               name="user_role",
               create_constraint=True,
               values_callable=lambda e: [m.value for m in e],
          ),
          nullable=False,
          index=True
     )
     salt_hex = Column(String(64), nullable=True)
     password_hash = Column(String(255), nullable=True)
     wallet_address = Column(String(42), nullable=True, index=True)
     created_at = Column(BigInteger, default=now_millis, nullable=False)

     def __repr__(self):
          return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"

     @property
     def uses_wallet(self) -> bool:
          return self.wallet_address is not None
