import os
import tempfile

_ROOT = tempfile.mkdtemp(prefix="ota-tests-")

os.environ.setdefault("OTA_ENV", "test")
os.environ.setdefault("OTA_RECORD_PASSWORD", "test-record-password")
os.environ.setdefault("OTA_BASE_URL", "http://ota.test")
os.environ.setdefault("OTA_APPS_DIR", os.path.join(_ROOT, "apps"))
os.environ.setdefault("OTA_LOG_DIR", os.path.join(_ROOT, "logs"))
os.environ.setdefault("OTA_RESTART_CMD", "")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ota_server.config import settings
from ota_server.models.session import init_db

RECORD_PASSWORD = os.environ["OTA_RECORD_PASSWORD"]


@pytest.fixture
def apps_dir(tmp_path, monkeypatch):
    root = tmp_path / "apps"
    root.mkdir()
    monkeypatch.setattr(settings, "apps_dir", root)
    return root


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


def publish(apps_dir, app_name, files, manifest_text=None):
    """Lay out an application directory the way the server expects it."""
    files_dir = apps_dir / app_name / "files"
    files_dir.mkdir(parents=True, exist_ok=True)
    for name, content in files.items():
        (files_dir / name).write_bytes(content)
    if manifest_text is not None:
        (apps_dir / app_name / "version.yaml").write_text(manifest_text, encoding="utf-8")
    return files_dir
