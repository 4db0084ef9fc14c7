"""Shared pytest fixtures for PFP gallery tests."""

import pytest
from pathlib import Path
from typing import Generator

from fastapi.testclient import TestClient

from pfp_gallery.config import Settings
from pfp_gallery.main import create_app

ADMIN_PASSWORD = "s3cret-pass"


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Temporary directory holding the public root and the database file."""
    return tmp_path


@pytest.fixture
def test_settings(temp_dir: Path) -> Settings:
    """Create settings pointing at a temporary SQLite database and public dir.

    Args:
        temp_dir: Temporary directory from fixture

    Returns:
        Settings instance for testing
    """
    public_dir = temp_dir / "public"
    public_dir.mkdir()
    (public_dir / "index.html").write_text("<html><body>PFP Gallery</body></html>")
    (public_dir / "app.js").write_text("console.log('pfp');")

    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{temp_dir / 'test.db'}",
        ADMIN_PASSWORD=ADMIN_PASSWORD,
        ADMIN_PASSWORD_HASH="",
        PUBLIC_DIR=str(public_dir),
        UPLOAD_SUBDIR="uploads",
        MAX_UPLOAD_BYTES=5 * 1024 * 1024,
    )


@pytest.fixture
def upload_dir(test_settings: Settings) -> Path:
    return test_settings.upload_path


@pytest.fixture
def test_client(test_settings: Settings) -> Generator[TestClient, None, None]:
    """TestClient with startup/shutdown events run (tables are created)."""
    app = create_app(test_settings)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def admin_headers() -> dict:
    return {"x-admin-pass": ADMIN_PASSWORD}


@pytest.fixture
def jpeg_bytes() -> bytes:
    """10 KiB payload starting with a JPEG signature."""
    header = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00"
    return header + b"\x00" * (10 * 1024 - len(header))
