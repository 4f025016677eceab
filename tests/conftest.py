"""
Pytest configuration and shared fixtures.
"""

import io
import json
from pathlib import Path
from typing import Any, Dict, List

import pytest

from sitecms.config import Settings
from sitecms.logger import StructuredLogger, reset_logger


class FakeUpload:
    """Minimal stand-in for fastapi.UploadFile."""

    def __init__(self, filename, content_type, data: bytes = b""):
        self.filename = filename
        self.content_type = content_type
        self.file = io.BytesIO(data)


@pytest.fixture(autouse=True)
def fresh_global_logger():
    reset_logger()
    yield
    reset_logger()


@pytest.fixture
def quiet_logger() -> StructuredLogger:
    return StructuredLogger(name="sitecms-test", enable_console=False, enable_file=False)


@pytest.fixture
def make_upload():
    return FakeUpload


@pytest.fixture
def sample_post_fields() -> Dict[str, Any]:
    return {"title": "Hello", "content": "World", "type": "News"}


@pytest.fixture
def sample_job_fields() -> Dict[str, Any]:
    return {
        "title": "Backend Engineer",
        "link": "https://example.com/careers/backend",
        "company": "Acme",
    }


@pytest.fixture
def posts_path(tmp_path) -> Path:
    return tmp_path / "data" / "posts.json"


@pytest.fixture
def populated_posts(posts_path) -> List[Dict[str, Any]]:
    """Write two posts to disk (newest first) and return them."""
    records = [
        {"id": 2000, "title": "Second", "content": "b", "type": "General", "media": "", "date": "Sun Oct 18 2026"},
        {"id": 1000, "title": "First", "content": "a", "type": "News", "media": "/uploads/1.png", "date": "Sat Oct 17 2026"},
    ]
    posts_path.parent.mkdir(parents=True, exist_ok=True)
    posts_path.write_text(json.dumps(records, indent=2))
    return records


@pytest.fixture
def settings(tmp_path) -> Settings:
    frontend = tmp_path / "front"
    frontend.mkdir()
    (frontend / "index.html").write_text("<h1>home</h1>")
    (frontend / "about.html").write_text("<h1>about</h1>")
    admin = tmp_path / "admin.html"
    admin.write_text("<h1>admin</h1>")
    return Settings(
        posts_file=tmp_path / "data" / "posts.json",
        jobs_file=tmp_path / "data" / "jobs.json",
        upload_dir=tmp_path / "uploads",
        frontend_dir=frontend,
        admin_page=admin,
        upload_mode="images",
        max_upload_bytes=1024,
    )


@pytest.fixture
def client(settings, quiet_logger):
    from fastapi.testclient import TestClient
    from sitecms.api import create_app

    app = create_app(settings, logger=quiet_logger)
    with TestClient(app) as c:
        yield c
