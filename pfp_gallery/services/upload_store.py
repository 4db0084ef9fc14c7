"""
Upload store: a directory of user-uploaded images served under /uploads.
Provides filename generation, size/type-checked storage and gallery listing.
"""
import logging
import os
import random
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from fastapi import UploadFile

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads"
CHUNK_SIZE = 64 * 1024  # Bytes read per chunk while streaming an upload
MAX_NONCE = 10 ** 9

_UNSAFE_CHARS = re.compile(r"[^a-z0-9.\-_]+")


def format_size(num_bytes: int) -> str:
    """Human-readable size: "5 MB", "1.5 MB", "512 KB", "100 bytes"."""
    if num_bytes >= 1024 * 1024:
        return f"{num_bytes / (1024 * 1024):.1f}".rstrip("0").rstrip(".") + " MB"
    if num_bytes >= 1024:
        return f"{num_bytes / 1024:.1f}".rstrip("0").rstrip(".") + " KB"
    return f"{num_bytes} bytes"


class UploadRejected(ValueError):
    """Raised when an upload fails the type or size checks."""


@dataclass
class StoredUpload:
    filename: str
    path: Path

    @property
    def url(self) -> str:
        return f"{PUBLIC_PREFIX}/{self.filename}"


def generate_upload_filename(
    original: Optional[str],
    timestamp_ms: Optional[int] = None,
    nonce: Optional[int] = None,
) -> str:
    """
    Build a unique-ish filename for an upload.

    The original name is lowercased, every run of characters outside
    [a-z0-9.-_] becomes "_", and "-<timestamp_ms>-<nonce>" is inserted
    between base and extension.

    Args:
        original: Client-supplied filename (defaults to "image")
        timestamp_ms: Milliseconds since the epoch (defaults to now)
        nonce: Random integer in [0, 1e9] (defaults to a fresh one)

    Returns:
        str: Sanitized filename, e.g. "my_pic-1700000000000-123456789.png"
    """
    name = _UNSAFE_CHARS.sub("_", (original or "image").lower())
    base, ext = os.path.splitext(name)
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    if nonce is None:
        nonce = random.randint(0, MAX_NONCE)
    return f"{base}-{timestamp_ms}-{nonce}{ext}"


class UploadStore:
    """Directory-backed store for uploaded images."""

    def __init__(self, directory: Path, max_bytes: int):
        self.directory = Path(directory)
        self.max_bytes = max_bytes

    def ensure_directory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    async def save(self, upload: UploadFile) -> StoredUpload:
        """
        Stream an uploaded file into the store.

        Bytes go to a hidden ".<name>.part" file first and are renamed into
        place only once the whole stream fits within max_bytes.

        Args:
            upload: Multipart file from the request

        Returns:
            StoredUpload: Generated filename and final path

        Raises:
            UploadRejected: If the content type is not image/* or the file is too large
            OSError: If the file cannot be written
        """
        content_type = upload.content_type or ""
        if not content_type.startswith("image/"):
            raise UploadRejected("Only image uploads are allowed")

        filename = generate_upload_filename(upload.filename)
        final_path = self.directory / filename
        part_path = self.directory / f".{filename}.part"

        written = 0
        try:
            with open(part_path, "wb") as out:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise UploadRejected(f"File too large (max {format_size(self.max_bytes)})")
                    out.write(chunk)
            os.replace(part_path, final_path)
        finally:
            if part_path.exists():
                part_path.unlink()

        logger.info(f"Stored upload {upload.filename!r} as {filename} ({written:,} bytes)")
        return StoredUpload(filename=filename, path=final_path)

    def remove(self, stored: StoredUpload) -> None:
        """Delete a stored upload; a file that is already gone is ignored."""
        try:
            stored.path.unlink()
            logger.info(f"Removed upload {stored.filename}")
        except FileNotFoundError:
            logger.warning(f"Upload {stored.filename} already removed")

    def list_gallery(self) -> List[Dict[str, str]]:
        """
        List visible files in the store as {url, name} dicts, sorted by name.
        An unreadable directory yields an empty list.
        """
        try:
            names = os.listdir(self.directory)
        except OSError as e:
            logger.warning(f"Could not read upload directory {self.directory}: {str(e)}")
            return []
        return [
            {"url": f"{PUBLIC_PREFIX}/{name}", "name": name}
            for name in sorted(names)
            if name and not name.startswith(".")
        ]
