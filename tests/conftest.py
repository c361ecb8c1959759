import pytest
import pytest_asyncio
from sqlalchemy.pool import NullPool

from blob_store import LocalBlobStore
from database import build_engine, build_session_factory, init_db
from services.account_service import AccountService


@pytest_asyncio.fixture
async def engine(tmp_path):
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def blob_store(tmp_path):
    return LocalBlobStore(str(tmp_path / "blobs"))


@pytest.fixture
def make_patient(db):
    async def _make(name="Pat Patient", email=None, password="patient-pass-1"):
        email = email or f"{name.lower().replace(' ', '.')}@example.com"
        return await AccountService.create_account(db, name, email, "patient", password=password)
    return _make


@pytest.fixture
def make_doctor(db):
    async def _make(name="Doc Doctor", email=None, password="doctor-pass-1"):
        email = email or f"{name.lower().replace(' ', '.')}@example.com"
        return await AccountService.create_account(db, name, email, "doctor", password=password)
    return _make
