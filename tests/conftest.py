import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from cryptostring.database import get_db, init_db
from cryptostring.main import app
from cryptostring.services.key_vault import KeyVault
from cryptostring.services.store_service import SqlKeyValueStore
from cryptostring.services.vault_codec import VaultCodec

MASTER_KEY = "Tq3!xV9@pL2#mZ7$wR5%kH8^nB4&cD6*"


def _set_sqlite_pragmas(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def _counting_bytes(n: int) -> bytes:
    return bytes(i % 256 for i in range(n))


@pytest.fixture
def counting_bytes():
    """Deterministic stand-in for the random source: 0, 1, 2, ..."""
    return _counting_bytes


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "cryptostring.sqlite"
    init_db(path)
    return path


@pytest.fixture
def test_db(db_path):
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )
    event.listen(engine, "connect", _set_sqlite_pragmas)
    TestSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    def override_get_db():
        db = TestSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestSession
    app.dependency_overrides.clear()
    engine.dispose()


@pytest.fixture
def db_session(test_db):
    db = test_db()
    yield db
    db.close()


@pytest.fixture
def store(db_session):
    return SqlKeyValueStore(db_session)


@pytest.fixture
def codec():
    return VaultCodec(MASTER_KEY)


@pytest.fixture
def vault(store, codec):
    return KeyVault(store, codec)


@pytest.fixture
def client(test_db):
    return TestClient(app)
