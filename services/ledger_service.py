# services/ledger_service.py
"""
Ledger Service - per-patient, hash-chained, append-only event log.

Every mutating event (account creation, report, doctor update, access
grant/revoke) appends one Block to the patient's chain:
1. Compute content hash from payload_type + payload_ref
2. Compute block hash from prev_hash|content_hash|timestamp|author_id|index
3. Link to the previous block's hash ("GENESIS" for index 0)
4. Blocks are append-only; no update/delete

Verification: check genesis, linkage and index sequence, and (strict mode)
recompute each block's hash from its stored fields.
"""
import asyncio
import hashlib
import logging
import weakref
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config import LEDGER_APPEND_MAX_ATTEMPTS
from errors import StorageError
from models import Block, PayloadType, User, now_millis

logger = logging.getLogger(__name__)


# Genesis block: no previous record
GENESIS_HASH = "GENESIS"
UNKNOWN_AUTHOR = "Unknown"
DELIMITER = "|"

# Appends to one chain are serialized inside this process; the
# (patient_id, index) unique constraint catches writers in other processes.
# An entry lives only while some append holds or awaits its lock.
_chain_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()


def _chain_lock(patient_id: str) -> asyncio.Lock:
     lock = _chain_locks.get(patient_id)
     if lock is None:
          lock = asyncio.Lock()
          _chain_locks[patient_id] = lock
     return lock


@dataclass(frozen=True)
class ChainFailure:
     index: int
     reason: str


@dataclass
class ChainVerification:
     ok: bool
     failures: List[ChainFailure] = field(default_factory=list)


def _sha256(value: str) -> str:
     return hashlib.sha256(value.encode("utf-8")).hexdigest()


def _normalize_payload_type(payload_type) -> str:
     if isinstance(payload_type, PayloadType):
          return payload_type.value
     return PayloadType(payload_type).value


def compute_content_hash(payload_type, payload_ref: Optional[str]) -> str:
     """
     SHA-256 over "payload_type:payload_ref" (absent ref encoded as empty).

     payload_type values never contain ":", so the first colon always
     separates the two fields.
     """
     return _sha256(f"{_normalize_payload_type(payload_type)}:{payload_ref or ''}")


def compute_block_hash(
     prev_hash: str,
     content_hash: str,
     timestamp: int,
     author_id: str,
     index: int
) -> str:
     """
     Compute SHA-256 hash for a block.

     Input string: prev_hash|content_hash|timestamp|author_id|index.
     Only author_id is free text, so it may not contain the delimiter.

     Raises:
          ValueError: If author_id contains "|".
     """
     if DELIMITER in author_id:
          raise ValueError(f"author_id may not contain {DELIMITER!r}")
     payload = DELIMITER.join([
          prev_hash,
          content_hash,
          str(int(timestamp)),
          author_id,
          str(int(index)),
     ])
     return _sha256(payload)


def recompute_hash(block: Block) -> str:
     """Recompute a stored block's hash from its own fields."""
     return compute_block_hash(
          block.prev_hash,
          compute_content_hash(block.payload_type, block.payload_ref),
          block.timestamp,
          block.author_id,
          block.index,
     )


async def get_chain(db: AsyncSession, patient_id: str) -> List[Block]:
     """All blocks of a patient's chain, ordered by index."""
     result = await db.execute(
          select(Block).where(Block.patient_id == patient_id).order_by(Block.index)
     )
     return list(result.scalars().all())


async def _resolve_author_name(db: AsyncSession, author_id: str) -> str:
     try:
          author = await db.get(User, author_id)
     except SQLAlchemyError as e:
          logger.warning(f"Author lookup failed for {author_id}: {e}")
          return UNKNOWN_AUTHOR
     return author.name if author is not None else UNKNOWN_AUTHOR


async def append_block(
     db: AsyncSession,
     patient_id: str,
     payload_type,
     author_id: str,
     payload_ref: Optional[str] = None,
     timestamp: Optional[int] = None
) -> Block:
     """
     Append a block to a patient's chain and commit it.

     - index is max(existing) + 1, or 0 for an empty chain
     - prev_hash is the hash of block index - 1, or GENESIS_HASH
     - author_name falls back to "Unknown" when the lookup fails

     The block is written in its own session on db's engine, so callers
     commit their domain rows first. Index conflicts with another writer
     are rolled back there and retried on a fresh read.

     Raises:
          ValueError: If author_id contains the hash delimiter.
          StorageError: If the block cannot be persisted.
     """
     payload_type = PayloadType(_normalize_payload_type(payload_type))
     if DELIMITER in author_id:
          raise ValueError(f"author_id may not contain {DELIMITER!r}")

     async with _chain_lock(patient_id):
          async with AsyncSession(bind=db.bind, expire_on_commit=False) as block_db:
               for attempt in range(1, LEDGER_APPEND_MAX_ATTEMPTS + 1):
                    try:
                         block = await _build_next_block(
                              block_db, patient_id, payload_type, author_id, payload_ref, timestamp
                         )
                         block_db.add(block)
                         await block_db.commit()
                    except IntegrityError:
                         await block_db.rollback()
                         logger.warning(
                              f"Index conflict appending to chain {patient_id} "
                              f"(attempt {attempt}/{LEDGER_APPEND_MAX_ATTEMPTS})"
                         )
                         continue
                    except SQLAlchemyError as e:
                         await block_db.rollback()
                         raise StorageError(f"Could not append block: {e.__class__.__name__}") from e

                    logger.info(f"Appended {payload_type.value} block #{block.index} to chain {patient_id}")
                    return block

     raise StorageError(
          f"Could not append block to chain {patient_id} after {LEDGER_APPEND_MAX_ATTEMPTS} attempts"
     )


async def _build_next_block(
     db: AsyncSession,
     patient_id: str,
     payload_type: PayloadType,
     author_id: str,
     payload_ref: Optional[str],
     timestamp: Optional[int]
) -> Block:
     chain = await get_chain(db, patient_id)
     if chain:
          index = chain[-1].index + 1
          prev_hash = chain[-1].hash
     else:
          index = 0
          prev_hash = GENESIS_HASH

     author_name = await _resolve_author_name(db, author_id)
     if timestamp is None:
          timestamp = now_millis()
     content_hash = compute_content_hash(payload_type, payload_ref)

     return Block(
          patient_id=patient_id,
          index=index,
          prev_hash=prev_hash,
          hash=compute_block_hash(prev_hash, content_hash, timestamp, author_id, index),
          timestamp=timestamp,
          payload_type=payload_type,
          payload_ref=payload_ref,
          author_id=author_id,
          author_name=author_name,
     )


def verify_chain(blocks: Sequence[Block], strict: bool = True) -> ChainVerification:
     """
     Verify one patient's chain, given in index order.

     Reports every failure (not just the first) as (index, reason):
     - "Invalid genesis": first block is not genesis or prev_hash != GENESIS
     - "Prev hash mismatch": prev_hash differs from the preceding block's hash
     - "Index out of sequence": index differs from the block's position
     - "Hash mismatch" (strict): recomputed hash differs from the stored one

     Never raises; a tampered chain yields ok=False.
     """
     failures: List[ChainFailure] = []

     for position, block in enumerate(blocks):
          if position == 0:
               if block.payload_type != PayloadType.GENESIS or block.prev_hash != GENESIS_HASH:
                    failures.append(ChainFailure(block.index, "Invalid genesis"))
          elif block.prev_hash != blocks[position - 1].hash:
               failures.append(ChainFailure(block.index, "Prev hash mismatch"))

          if block.index != position:
               failures.append(ChainFailure(block.index, "Index out of sequence"))

          if strict and not _hash_matches(block):
               failures.append(ChainFailure(block.index, "Hash mismatch"))

     return ChainVerification(ok=not failures, failures=failures)


def _hash_matches(block: Block) -> bool:
     try:
          return recompute_hash(block) == block.hash
     except (ValueError, TypeError):
          return False
