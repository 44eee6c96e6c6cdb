"""
Upload validation for image endpoints

Limits: images only, 5 MB per file, 1 to 20 files per request.
"""
from typing import List, Optional

from fastapi import UploadFile

from middleware.errors import BadRequestError, PayloadTooLargeError

MAX_FILE_SIZE = 5_000_000
MAX_FILES = 20


def _size_of(file: UploadFile) -> int:
    if file.size is not None:
        return file.size
    file.file.seek(0, 2)
    size = file.file.tell()
    file.file.seek(0)
    return size


def validate_image_files(files: Optional[List[UploadFile]], max_files: int = MAX_FILES) -> List[UploadFile]:
    """
    Check an upload batch before anything is stored.

    Raises:
        BadRequestError: no file, too many files, or a non-image file
        PayloadTooLargeError: a file exceeds 5 MB
    """
    files = [f for f in (files or []) if f is not None]
    if not files:
        raise BadRequestError("file needed")
    if len(files) > max_files:
        raise BadRequestError(f"too many files, maximum is {max_files}")

    for file in files:
        if not (file.content_type or "").startswith("image/"):
            raise BadRequestError(f"{file.filename} isn't an image")
        if _size_of(file) > MAX_FILE_SIZE:
            raise PayloadTooLargeError(f"{file.filename} is too large, maximum is 5mb")
    return files
