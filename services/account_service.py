# services/account_service.py
"""
Account Service - sign-up, login and the user directory.

Creating a patient account also opens the patient's ledger chain with a
genesis block authored by the new patient.
"""
import logging
from typing import List, Optional

from eth_utils import is_address, to_checksum_address
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config import WALLET_SIGNATURE_MAX_AGE_SECONDS
from errors import DuplicateEmail, Forbidden, InvalidCredentials, MalformedCredential
from models import PayloadType, User, UserRole, now_millis
from services import credential_service
from services.ledger_service import append_block

logger = logging.getLogger(__name__)


class AccountService:
     """Service class for identity records and authentication."""

     @staticmethod
     async def get_by_id(db: AsyncSession, user_id: str) -> Optional[User]:
          return await db.get(User, user_id)

     @staticmethod
     async def get_by_email(db: AsyncSession, email: str) -> Optional[User]:
          result = await db.execute(select(User).where(User.email == email))
          return result.scalars().first()

     @staticmethod
     async def list_by_role(db: AsyncSession, role: UserRole) -> List[User]:
          result = await db.execute(
               select(User).where(User.role == UserRole(role)).order_by(User.name)
          )
          return list(result.scalars().all())

     @staticmethod
     async def create_account(
          db: AsyncSession,
          name: str,
          email: str,
          role: UserRole,
          password: Optional[str] = None,
          wallet_address: Optional[str] = None
     ) -> User:
          """
          Create a patient or doctor account.

          Args:
               db: SQLAlchemy async session
               name: Display name
               email: Unique email (case-sensitive as stored)
               role: patient or doctor
               password: Password for password login
               wallet_address: Wallet address for signature login

          Returns:
               Created User object

          Raises:
               ValueError: If not exactly one of password / wallet_address is given
               MalformedCredential: If the wallet address is not a valid address
               DuplicateEmail: If the email is already registered
               StorageError: If the patient's genesis block cannot be written;
                    the account is removed again
          """
          role = UserRole(role)
          if (password is None) == (wallet_address is None):
               raise ValueError("Provide either a password or a wallet address")

          if await AccountService.get_by_email(db, email):
               raise DuplicateEmail("Email already registered")

          user = User(name=name, email=email, role=role, created_at=now_millis())
          if password is not None:
               user.salt_hex = credential_service.generate_salt()
               user.password_hash = credential_service.hash_password(password, user.salt_hex)
          else:
               if not is_address(wallet_address):
                    raise MalformedCredential("Invalid wallet address")
               user.wallet_address = to_checksum_address(wallet_address)

          db.add(user)
          try:
               await db.commit()
          except IntegrityError:
               await db.rollback()
               raise DuplicateEmail("Email already registered")

          logger.info(f"Created {role.value} account {user.id}")

          if role == UserRole.PATIENT:
               user_id = user.id
               try:
                    await append_block(
                         db,
                         patient_id=user_id,
                         payload_type=PayloadType.GENESIS,
                         author_id=user_id,
                    )
               except Exception:
                    # A patient never exists without a genesis block
                    await db.execute(delete(User).where(User.id == user_id))
                    await db.commit()
                    logger.error(f"Genesis block failed; removed patient account {user_id}")
                    raise
          return user

     @staticmethod
     async def login(db: AsyncSession, email: str, password: str) -> User:
          """
          Password login.

          Raises:
               InvalidCredentials: Unknown email, wallet-only account or wrong password
          """
          user = await AccountService.get_by_email(db, email)
          if user is None or not user.password_hash:
               raise InvalidCredentials("Invalid credentials")
          if not credential_service.verify_password(password, user.salt_hex, user.password_hash):
               logger.warning(f"Failed password login for {user.id}")
               raise InvalidCredentials("Invalid credentials")
          return user

     @staticmethod
     async def login_with_wallet(
          db: AsyncSession,
          email: str,
          message: str,
          signature: str,
          now_ms: Optional[int] = None
     ) -> User:
          """
          Wallet signature login.

          The signed message must be the standard login message for the
          user's role, with a timestamp inside the accepted window.

          Raises:
               MalformedCredential: Unparseable message or signature
               InvalidCredentials: Unknown email, wrong role, stale message or wrong signer
          """
          user = await AccountService.get_by_email(db, email)
          if user is None or not user.uses_wallet:
               raise InvalidCredentials("No account found with this email and wallet combination")

          role, timestamp_ms = credential_service.parse_auth_message(message)
          if message != credential_service.build_auth_message(role, timestamp_ms):
               raise InvalidCredentials("Message was not issued for this system")
          if role != user.role.value:
               raise InvalidCredentials(f"Account is not registered as {role}")

          now_ms = now_ms if now_ms is not None else now_millis()
          if abs(now_ms - timestamp_ms) > WALLET_SIGNATURE_MAX_AGE_SECONDS * 1000:
               raise InvalidCredentials("Signed message has expired")

          if not credential_service.verify_signature(message, signature, user.wallet_address):
               logger.warning(f"Wallet signature mismatch for {user.id}")
               raise InvalidCredentials("Signature does not match wallet address")
          return user

     @staticmethod
     async def change_password(
          db: AsyncSession,
          actor: Optional[User],
          current_password: Optional[str],
          new_password: str
     ) -> User:
          """
          Replace the actor's password with a freshly salted one.

          Wallet-only accounts may add a password; accounts that already have
          one must present it.
          """
          if actor is None:
               raise Forbidden("Sign in to change your password")
          user = await db.get(User, actor.id)
          if user.password_hash and not credential_service.verify_password(
               current_password or "", user.salt_hex, user.password_hash
          ):
               raise InvalidCredentials("Incorrect current password")

          user.salt_hex = credential_service.generate_salt()
          user.password_hash = credential_service.hash_password(new_password, user.salt_hex)
          await db.commit()
          logger.info(f"Password replaced for {user.id}")
          return user
