# services/credential_service.py
"""
Credential Engine - password digests and wallet signature checks.

Pure functions over their inputs; nothing here touches storage.

Passwords: PBKDF2-SHA256 (passlib) with a per-account random salt that is
stored next to the digest, so the digest is reproducible for verification.

Wallets: personal-message (EIP-191) signatures over the login message
"Sign this message to authenticate with <system> as <role>\nTimestamp: <ms>".
"""
import hmac
import re
import secrets
from typing import Tuple

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys.exceptions import BadSignature
from eth_utils import ValidationError as KeyValidationError
from passlib.hash import pbkdf2_sha256

from config import SYSTEM_NAME
from errors import MalformedCredential

SALT_BYTES = 16
PBKDF2_ROUNDS = 29000

_AUTH_MESSAGE = re.compile(
     r"^Sign this message to authenticate with (?P<system>.+) as (?P<role>\w+)\nTimestamp: (?P<ts>\d+)$"
)


def generate_salt() -> str:
     """Fresh random salt, hex encoded. Generated once per account."""
     return secrets.token_hex(SALT_BYTES)


def hash_password(password: str, salt_hex: str) -> str:
     """Deterministic salted digest of a password."""
     return pbkdf2_sha256.using(salt=bytes.fromhex(salt_hex), rounds=PBKDF2_ROUNDS).hash(password)


def verify_password(password: str, salt_hex: str, stored_hash: str) -> bool:
     """Recompute the digest with the stored salt and compare exactly."""
     if not salt_hex or not stored_hash:
          return False
     return hmac.compare_digest(hash_password(password, salt_hex), stored_hash)


def build_auth_message(role: str, timestamp_ms: int, system_name: str = SYSTEM_NAME) -> str:
     return f"Sign this message to authenticate with {system_name} as {role}\nTimestamp: {int(timestamp_ms)}"


def parse_auth_message(message: str) -> Tuple[str, int]:
     """
     Extract (role, timestamp_ms) from a signed login message.

     Raises:
          MalformedCredential: If the message does not follow the template.
     """
     match = _AUTH_MESSAGE.match(message or "")
     if not match:
          raise MalformedCredential("Unrecognized authentication message")
     return match.group("role"), int(match.group("ts"))


def recover_address(message: str, signature: str) -> str:
     """
     Recover the signing address of a personal message.

     Raises:
          MalformedCredential: If the signature cannot be decoded.
     """
     try:
          return Account.recover_message(encode_defunct(text=message), signature=signature)
     # eth_account signals a bad recovery id with a bare assert
     except (ValueError, TypeError, IndexError, AssertionError, BadSignature, KeyValidationError) as e:
          raise MalformedCredential(f"Malformed signature: {e}") from e


def verify_signature(message: str, signature: str, claimed_address: str) -> bool:
     """Check that `signature` over `message` was made by `claimed_address`."""
     recovered = recover_address(message, signature)
     return recovered.lower() == (claimed_address or "").lower()
