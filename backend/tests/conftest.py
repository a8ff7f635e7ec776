import os
import sys
import tempfile

# Add the parent directory (backend) to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Settings are read once at import time; point them at throwaway locations first
_TMP_DIR = tempfile.mkdtemp(prefix="codegen-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'app.db')}"
os.environ["DOWNLOAD_DIR"] = os.path.join(_TMP_DIR, "downloads")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker

from core.artifact_packager import ArtifactPackager
from core.code_generator import CodeGenerator
from core.database import init_db
from core.metadata_store import MetadataStore
from core.table_catalog import TableCatalog

DEMO_DDL = [
    """
    CREATE TABLE demo_order (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        order_no    VARCHAR(32) NOT NULL,
        status      TINYINT NOT NULL DEFAULT 0,
        remark      TEXT,
        create_time DATETIME
    )""",
    """
    CREATE TABLE la_demo_order (
        id          INTEGER PRIMARY KEY,
        order_no    VARCHAR(32),
        buyer_name  VARCHAR(64),
        amount      DECIMAL(10,2),
        create_time DATETIME
    )""",
    """
    CREATE TABLE la_article_cate (
        id          INTEGER PRIMARY KEY,
        pid         INTEGER NOT NULL DEFAULT 0,
        name        VARCHAR(60) NOT NULL,
        is_disable  TINYINT,
        create_time DATETIME
    )""",
    "CREATE TABLE qrtz_triggers (trigger_name VARCHAR(200) PRIMARY KEY)",
    "CREATE TABLE gen_scratch (id INTEGER PRIMARY KEY)",
]


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(f"sqlite:///{tmp_path / 'live.db'}")
    init_db(bind=eng)
    with eng.begin() as conn:
        for stmt in DEMO_DDL:
            conn.execute(text(stmt))
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def session(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture
def store(session):
    return MetadataStore(session)


@pytest.fixture
def catalog(engine):
    return TableCatalog(engine)


@pytest.fixture
def packager(tmp_path):
    return ArtifactPackager(str(tmp_path / "downloads"))


@pytest.fixture
def generator(store, catalog, packager):
    return CodeGenerator(store, catalog, packager=packager)


@pytest.fixture
def client(engine, session_factory):
    from api.gen import get_catalog
    from core.database import get_db
    from main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_catalog] = lambda: TableCatalog(engine)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
