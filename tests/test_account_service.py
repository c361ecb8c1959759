import pytest

from errors import DuplicateEmail, Forbidden, InvalidCredentials, MalformedCredential, StorageError
from models import PayloadType, UserRole, now_millis
from services import account_service, credential_service
from services.account_service import AccountService
from services.ledger_service import get_chain
from helpers import OTHER_WALLET, PATIENT_WALLET, sign


async def make_wallet_user(db, role="patient", wallet=PATIENT_WALLET, email="wallet@example.com"):
    return await AccountService.create_account(
        db, "Wally Wallet", email, role, wallet_address=wallet["address"]
    )


async def test_patient_account_opens_chain_with_genesis(db, make_patient):
    patient = await make_patient("Ada Patient")

    assert patient.role == UserRole.PATIENT
    assert patient.salt_hex and patient.password_hash
    assert patient.password_hash != "patient-pass-1"

    chain = await get_chain(db, patient.id)
    assert len(chain) == 1
    assert chain[0].payload_type == PayloadType.GENESIS
    assert chain[0].author_id == patient.id


async def test_doctor_account_has_no_chain(db, make_doctor):
    doctor = await make_doctor()
    assert doctor.role == UserRole.DOCTOR
    assert await get_chain(db, doctor.id) == []


async def test_duplicate_email_is_rejected(db, make_patient, make_doctor):
    await make_patient(email="same@example.com")
    with pytest.raises(DuplicateEmail):
        await make_doctor(email="same@example.com")
    assert len(await AccountService.list_by_role(db, UserRole.DOCTOR)) == 0


async def test_email_match_is_case_sensitive(make_patient):
    first = await make_patient(email="ada@example.com")
    second = await make_patient(email="Ada@example.com")
    assert first.id != second.id


@pytest.mark.parametrize("credentials", [{}, {"password": "pw-123456", "wallet_address": PATIENT_WALLET["address"]}])
async def test_exactly_one_credential_is_required(db, credentials):
    with pytest.raises(ValueError):
        await AccountService.create_account(db, "No One", "none@example.com", "patient", **credentials)


async def test_wallet_address_is_validated_and_checksummed(db):
    with pytest.raises(MalformedCredential):
        await AccountService.create_account(db, "Bad", "bad@example.com", "doctor", wallet_address="0x1234")

    user = await AccountService.create_account(
        db, "Good", "good@example.com", "doctor", wallet_address=PATIENT_WALLET["address"].lower()
    )
    assert user.wallet_address == PATIENT_WALLET["address"]
    assert user.password_hash is None


async def test_password_login(db, make_patient):
    patient = await make_patient(email="ada@example.com", password="patient-pass-1")

    user = await AccountService.login(db, "ada@example.com", "patient-pass-1")
    assert user.id == patient.id

    with pytest.raises(InvalidCredentials):
        await AccountService.login(db, "ada@example.com", "wrong-pass")
    with pytest.raises(InvalidCredentials):
        await AccountService.login(db, "nobody@example.com", "patient-pass-1")


async def test_password_login_refused_for_wallet_account(db):
    await make_wallet_user(db)
    with pytest.raises(InvalidCredentials):
        await AccountService.login(db, "wallet@example.com", "")


async def test_wallet_login(db):
    user = await make_wallet_user(db, role="doctor")
    timestamp = now_millis()
    message = credential_service.build_auth_message("doctor", timestamp)

    logged_in = await AccountService.login_with_wallet(
        db, "wallet@example.com", message, sign(message, PATIENT_WALLET["private_key"])
    )
    assert logged_in.id == user.id


async def test_wallet_login_rejects_other_signer(db):
    await make_wallet_user(db)
    message = credential_service.build_auth_message("patient", now_millis())

    with pytest.raises(InvalidCredentials):
        await AccountService.login_with_wallet(
            db, "wallet@example.com", message, sign(message, OTHER_WALLET["private_key"])
        )


async def test_wallet_login_rejects_wrong_role(db):
    await make_wallet_user(db, role="patient")
    message = credential_service.build_auth_message("doctor", now_millis())

    with pytest.raises(InvalidCredentials):
        await AccountService.login_with_wallet(
            db, "wallet@example.com", message, sign(message, PATIENT_WALLET["private_key"])
        )


async def test_wallet_login_rejects_stale_message(db):
    await make_wallet_user(db)
    timestamp = 1760659200000
    message = credential_service.build_auth_message("patient", timestamp)
    signature = sign(message, PATIENT_WALLET["private_key"])

    user = await AccountService.login_with_wallet(
        db, "wallet@example.com", message, signature, now_ms=timestamp + 60_000
    )
    assert user.email == "wallet@example.com"

    with pytest.raises(InvalidCredentials):
        await AccountService.login_with_wallet(
            db, "wallet@example.com", message, signature, now_ms=timestamp + 301_000
        )


async def test_wallet_login_rejects_foreign_system_message(db):
    await make_wallet_user(db)
    message = credential_service.build_auth_message("patient", now_millis(), system_name="OtherChain")

    with pytest.raises(InvalidCredentials):
        await AccountService.login_with_wallet(
            db, "wallet@example.com", message, sign(message, PATIENT_WALLET["private_key"])
        )


async def test_wallet_login_malformed_input(db):
    await make_wallet_user(db)
    with pytest.raises(MalformedCredential):
        await AccountService.login_with_wallet(db, "wallet@example.com", "let me in", "0x00")

    message = credential_service.build_auth_message("patient", now_millis())
    with pytest.raises(MalformedCredential):
        await AccountService.login_with_wallet(db, "wallet@example.com", message, "not-a-signature")


async def test_wallet_login_unknown_email(db):
    message = credential_service.build_auth_message("patient", now_millis())
    with pytest.raises(InvalidCredentials):
        await AccountService.login_with_wallet(
            db, "ghost@example.com", message, sign(message, PATIENT_WALLET["private_key"])
        )


async def test_change_password(db, make_patient):
    patient = await make_patient(email="ada@example.com", password="patient-pass-1")
    old_salt = patient.salt_hex

    with pytest.raises(InvalidCredentials):
        await AccountService.change_password(db, patient, "wrong-pass", "new-pass-123")

    updated = await AccountService.change_password(db, patient, "patient-pass-1", "new-pass-123")
    assert updated.salt_hex != old_salt

    await AccountService.login(db, "ada@example.com", "new-pass-123")
    with pytest.raises(InvalidCredentials):
        await AccountService.login(db, "ada@example.com", "patient-pass-1")


async def test_wallet_account_can_add_password(db):
    user = await make_wallet_user(db)
    await AccountService.change_password(db, user, None, "added-pass-1")

    logged_in = await AccountService.login(db, "wallet@example.com", "added-pass-1")
    assert logged_in.id == user.id


async def test_change_password_requires_actor(db):
    with pytest.raises(Forbidden):
        await AccountService.change_password(db, None, None, "new-pass-123")


async def test_list_by_role(db, make_patient, make_doctor):
    await make_doctor("Zed Doctor")
    await make_doctor("Amy Doctor")
    await make_patient("Pat Patient")

    doctors = await AccountService.list_by_role(db, "doctor")
    assert [d.name for d in doctors] == ["Amy Doctor", "Zed Doctor"]
    assert [p.name for p in await AccountService.list_by_role(db, UserRole.PATIENT)] == ["Pat Patient"]


async def test_failed_genesis_removes_patient_account(db, monkeypatch):
    async def ledger_down(*args, **kwargs):
        raise StorageError("ledger unavailable")

    monkeypatch.setattr(account_service, "append_block", ledger_down)
    with pytest.raises(StorageError):
        await AccountService.create_account(db, "Ada Patient", "ada@example.com", "patient", password="patient-pass-1")
    assert await AccountService.get_by_email(db, "ada@example.com") is None

    # Signing up again works and opens the chain with genesis
    monkeypatch.undo()
    patient = await AccountService.create_account(
        db, "Ada Patient", "ada@example.com", "patient", password="patient-pass-1"
    )
    chain = await get_chain(db, patient.id)
    assert [b.payload_type for b in chain] == [PayloadType.GENESIS]
