# assignment_eval/services/storage_service.py
"""Local-disk file store; submissions keep only the returned reference."""
import logging
import secrets
import time
from pathlib import Path

from fastapi import UploadFile

from assignment_eval.core.config import settings
from assignment_eval.core.errors import NotFound, ValidationError
from assignment_eval.schemas.upload import StoredFile

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


def get_upload_dir() -> Path:
    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


def _unique_name(original_name: str) -> str:
    original = Path(original_name).name
    suffix = Path(original).suffix
    stem = Path(original).stem or "file"
    return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}-{stem}{suffix}"


def save_upload(upload: UploadFile) -> StoredFile:
    if not upload.filename:
        raise ValidationError("No file uploaded")
    if upload.content_type not in settings.ALLOWED_UPLOAD_TYPES:
        raise ValidationError("Invalid file type. Allowed: PDF, DOC, DOCX, TXT, JPG, PNG, GIF")

    max_mb = settings.MAX_UPLOAD_SIZE // (1024 * 1024)
    filename = _unique_name(upload.filename)
    target = get_upload_dir() / filename

    size = 0
    with open(target, "wb") as out:
        while chunk := upload.file.read(_CHUNK_SIZE):
            size += len(chunk)
            if size > settings.MAX_UPLOAD_SIZE:
                break
            out.write(chunk)

    if size > settings.MAX_UPLOAD_SIZE:
        target.unlink(missing_ok=True)
        raise ValidationError(f"File too large. Maximum size is {max_mb}MB")

    logger.info(f"Stored upload {filename} ({size} bytes)")
    return StoredFile(
        filename=filename,
        original_name=upload.filename,
        mime_type=upload.content_type,
        size=size,
        url=f"{settings.UPLOAD_URL_PREFIX}/{filename}",
    )


def delete_upload(filename: str) -> None:
    upload_dir = get_upload_dir().resolve()
    target = (upload_dir / filename).resolve()
    if target.parent != upload_dir:
        raise ValidationError("Invalid file name")
    if not target.is_file():
        raise NotFound("File not found")
    target.unlink()
    logger.info(f"Deleted upload {filename}")
