"""
Local storage for uploaded media

Files land under {UPLOAD_DIR}/files/<folder>/ and are served by the app's
/public static mount, so the stored location is the public path:

    /public/files/albums/1700000000000-po_x5b8r2yj-0.jpg
"""
import logging
import os
import re
import time
from typing import Optional

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from config.settings import Settings

logger = logging.getLogger(__name__)

FOLDERS = ("albums", "avatars", "identity_cards", "sent")

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


def safe_extension(filename: Optional[str]) -> str:
    ext = os.path.splitext(filename or "")[1].lower()
    return _UNSAFE.sub("", ext)[:10]


class MediaStorage:
    """Writes uploads to disk and returns their public paths"""

    def __init__(self, settings: Settings):
        self.root = settings.upload_dir

    def folder_path(self, folder: str) -> str:
        if folder not in FOLDERS:
            raise ValueError(f"Unknown upload folder: {folder}")
        return os.path.join(self.root, "files", folder)

    async def save(self, file: UploadFile, folder: str, name: str) -> str:
        """
        Store an upload.

        Args:
            file: uploaded file
            folder: one of FOLDERS
            name: base name (sanitized); a timestamp prefix keeps it unique

        Returns:
            Public path (/public/files/<folder>/<file>)
        """
        directory = self.folder_path(folder)
        filename = f"{int(time.time() * 1000)}-{_UNSAFE.sub('_', name)}{safe_extension(file.filename)}"
        content = await file.read()

        def _write():
            os.makedirs(directory, exist_ok=True)
            with open(os.path.join(directory, filename), "wb") as out:
                out.write(content)

        await run_in_threadpool(_write)
        logger.debug(f"💾 Stored {filename} in {folder} ({len(content)} bytes)")
        return f"/public/files/{folder}/{filename}"
