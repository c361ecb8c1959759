import asyncio
import hashlib

import pytest
from sqlalchemy import select, update

from errors import StorageError
from models import Block, PayloadType
from services import ledger_service
from services.ledger_service import (
    GENESIS_HASH,
    append_block,
    compute_block_hash,
    compute_content_hash,
    get_chain,
    recompute_hash,
    verify_chain,
)


def build_chain(payloads, patient_id="patient-1", author_id="author-1", start=1760659200000):
    """Well-formed in-memory chain for verification tests."""
    blocks = []
    prev_hash = GENESIS_HASH
    for index, (payload_type, payload_ref) in enumerate(payloads):
        timestamp = start + index
        block_hash = compute_block_hash(
            prev_hash, compute_content_hash(payload_type, payload_ref), timestamp, author_id, index
        )
        blocks.append(Block(
            patient_id=patient_id,
            index=index,
            prev_hash=prev_hash,
            hash=block_hash,
            timestamp=timestamp,
            payload_type=payload_type,
            payload_ref=payload_ref,
            author_id=author_id,
            author_name="Author",
        ))
        prev_hash = block_hash
    return blocks


FIVE_EVENTS = [
    (PayloadType.GENESIS, None),
    (PayloadType.ACCESS_GRANTED, "edge-1"),
    (PayloadType.REPORT, "record-1"),
    (PayloadType.UPDATE, "record-2"),
    (PayloadType.ACCESS_REVOKED, "patient-1:doctor-1"),
]


def reasons(result):
    return [(f.index, f.reason) for f in result.failures]


def test_content_hash_covers_type_and_ref():
    assert compute_content_hash(PayloadType.REPORT, "abc") == hashlib.sha256(b"report:abc").hexdigest()
    assert compute_content_hash("genesis", None) == hashlib.sha256(b"genesis:").hexdigest()
    assert compute_content_hash(PayloadType.REPORT, "abc") != compute_content_hash(PayloadType.UPDATE, "abc")


def test_block_hash_input_layout():
    expected = hashlib.sha256(b"GENESIS|c0ffee|1760659200000|author-1|0").hexdigest()
    assert compute_block_hash(GENESIS_HASH, "c0ffee", 1760659200000, "author-1", 0) == expected


def test_block_hash_rejects_delimiter_in_author():
    with pytest.raises(ValueError):
        compute_block_hash(GENESIS_HASH, "c0ffee", 1, "evil|author", 0)


def test_verify_accepts_well_formed_chain():
    result = verify_chain(build_chain(FIVE_EVENTS))
    assert result.ok
    assert result.failures == []


def test_verify_empty_chain():
    assert verify_chain([]).ok


def test_changed_payload_ref_is_a_hash_mismatch():
    blocks = build_chain(FIVE_EVENTS)
    blocks[2].payload_ref = "forged-record"

    result = verify_chain(blocks)
    assert not result.ok
    assert reasons(result) == [(2, "Hash mismatch")]


def test_every_tampered_block_is_reported():
    blocks = build_chain(FIVE_EVENTS)
    blocks[1].payload_ref = "edge-forged"
    blocks[3].timestamp += 1

    assert reasons(verify_chain(blocks)) == [(1, "Hash mismatch"), (3, "Hash mismatch")]


def test_lenient_mode_only_checks_linkage():
    blocks = build_chain(FIVE_EVENTS)
    blocks[2].payload_ref = "forged-record"
    assert verify_chain(blocks, strict=False).ok


def test_rewritten_hash_breaks_the_next_link():
    blocks = build_chain(FIVE_EVENTS)
    blocks[2].hash = "0" * 64

    result = verify_chain(blocks)
    assert (2, "Hash mismatch") in reasons(result)
    assert (3, "Prev hash mismatch") in reasons(result)
    assert reasons(verify_chain(blocks, strict=False)) == [(3, "Prev hash mismatch")]


def test_invalid_genesis():
    blocks = build_chain(FIVE_EVENTS)
    blocks[0].prev_hash = "not-genesis"
    assert (0, "Invalid genesis") in reasons(verify_chain(blocks, strict=False))

    blocks = build_chain([(PayloadType.REPORT, "record-1")] + FIVE_EVENTS[1:])
    assert reasons(verify_chain(blocks)) == [(0, "Invalid genesis")]


def test_index_out_of_sequence():
    blocks = build_chain(FIVE_EVENTS)
    blocks[3].index = 7

    result = verify_chain(blocks, strict=False)
    assert reasons(result) == [(7, "Index out of sequence")]


async def test_tampered_row_in_storage_is_detected_on_reload(session_factory):
    async with session_factory() as db:
        await append_block(db, "patient-x", PayloadType.GENESIS, author_id="patient-x")
        await append_block(db, "patient-x", PayloadType.REPORT, author_id="patient-x", payload_ref="r1")
        await append_block(db, "patient-x", PayloadType.REPORT, author_id="patient-x", payload_ref="r2")

    async with session_factory() as db:
        await db.execute(
            update(Block)
            .where(Block.patient_id == "patient-x", Block.index == 1)
            .values(payload_ref="r1-forged")
        )
        await db.commit()

    async with session_factory() as db:
        result = verify_chain(await get_chain(db, "patient-x"))
    assert reasons(result) == [(1, "Hash mismatch")]


async def test_genesis_block_of_new_patient(db, make_patient):
    patient = await make_patient()
    chain = await get_chain(db, patient.id)

    assert len(chain) == 1
    genesis = chain[0]
    assert genesis.index == 0
    assert genesis.prev_hash == GENESIS_HASH
    assert genesis.payload_type == PayloadType.GENESIS
    assert genesis.author_id == patient.id
    assert genesis.author_name == patient.name
    assert recompute_hash(genesis) == genesis.hash


async def test_append_links_to_previous_block(db, make_patient):
    patient = await make_patient()
    first = await append_block(db, patient.id, PayloadType.REPORT, author_id=patient.id, payload_ref="r1")
    second = await append_block(db, patient.id, "update", author_id=patient.id, payload_ref="r2")

    chain = await get_chain(db, patient.id)
    assert [b.index for b in chain] == [0, 1, 2]
    assert first.prev_hash == chain[0].hash
    assert second.prev_hash == first.hash
    assert second.payload_type == PayloadType.UPDATE
    assert all(len(b.hash) == 64 for b in chain)
    assert verify_chain(chain).ok


async def test_explicit_timestamp_is_hashed(db):
    block = await append_block(db, "patient-t", PayloadType.GENESIS, author_id="patient-t", timestamp=1760659200000)
    assert block.timestamp == 1760659200000
    assert block.hash == compute_block_hash(
        GENESIS_HASH, compute_content_hash(PayloadType.GENESIS, None), 1760659200000, "patient-t", 0
    )


async def test_unknown_author_name_falls_back(db):
    block = await append_block(db, "patient-u", PayloadType.GENESIS, author_id="no-such-user")
    assert block.author_name == "Unknown"


async def test_append_rejects_delimiter_in_author(db):
    with pytest.raises(ValueError):
        await append_block(db, "patient-d", PayloadType.GENESIS, author_id="a|b")
    assert await get_chain(db, "patient-d") == []


async def test_concurrent_appends_produce_contiguous_chain(session_factory, make_patient):
    patient = await make_patient()

    async def append_one(i):
        async with session_factory() as session:
            return await append_block(
                session, patient.id, PayloadType.REPORT, author_id=patient.id, payload_ref=f"record-{i}"
            )

    await asyncio.gather(*(append_one(i) for i in range(10)))

    async with session_factory() as session:
        chain = await get_chain(session, patient.id)
    assert [b.index for b in chain] == list(range(11))
    assert len({b.hash for b in chain}) == 11
    assert verify_chain(chain).ok


async def test_index_conflict_is_retried(db, make_patient, monkeypatch):
    patient = await make_patient()
    real_build = ledger_service._build_next_block
    raced = []

    async def build_behind_another_writer(*args):
        block = await real_build(*args)
        if not raced:
            # Simulate a writer elsewhere that already took this index
            raced.append(block.index)
            block.index -= 1
        return block

    monkeypatch.setattr(ledger_service, "_build_next_block", build_behind_another_writer)
    block = await append_block(db, patient.id, PayloadType.REPORT, author_id=patient.id, payload_ref="r1")

    assert raced == [1]
    assert block.index == 1
    chain = await get_chain(db, patient.id)
    assert [b.index for b in chain] == [0, 1]
    assert verify_chain(chain).ok


async def test_persistent_conflict_raises_storage_error(db, make_patient, monkeypatch):
    patient = await make_patient()
    real_build = ledger_service._build_next_block

    async def always_behind(*args):
        block = await real_build(*args)
        block.index = 0
        return block

    monkeypatch.setattr(ledger_service, "_build_next_block", always_behind)
    monkeypatch.setattr(ledger_service, "LEDGER_APPEND_MAX_ATTEMPTS", 2)

    with pytest.raises(StorageError):
        await append_block(db, patient.id, PayloadType.REPORT, author_id=patient.id, payload_ref="r1")

    result = await db.execute(select(Block).where(Block.patient_id == patient.id))
    assert len(result.scalars().all()) == 1


async def test_chain_lock_is_dropped_after_append(db):
    await append_block(db, "patient-l", PayloadType.GENESIS, author_id="patient-l")
    await append_block(db, "patient-l", PayloadType.REPORT, author_id="patient-l", payload_ref="r1")
    assert "patient-l" not in ledger_service._chain_locks
