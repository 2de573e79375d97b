import re
import time
from pathlib import Path
from typing import BinaryIO

from backoffice.core.config import settings
from backoffice.core.errors import ValidationError
from backoffice.core.observability import log_event
from backoffice.schemas.dashboard import UploadOut


def _safe_file_name(name: str) -> str:
    base = Path(name.replace("\\", "/")).name
    cleaned = re.sub(r"[^A-Za-z0-9._-]+", "-", base).strip("-.")
    return cleaned or "upload"


def validate_upload(*, directory: str, content_type: str | None, size: int) -> None:
    if content_type not in settings.upload_allowed_content_types:
        raise ValidationError("Invalid file type. Only JPEG, PNG, and WebP images are allowed.")
    if size > settings.upload_max_bytes:
        max_mb = settings.upload_max_bytes // (1024 * 1024)
        raise ValidationError(f"File too large. Maximum size is {max_mb}MB.")
    if directory not in settings.upload_allowed_directories:
        raise ValidationError(
            "Invalid directory. Allowed directories: "
            + ", ".join(settings.upload_allowed_directories)
        )


def read_upload(stream: BinaryIO) -> bytes:
    """Read at most one byte past the size limit, enough to reject oversized files."""
    return stream.read(settings.upload_max_bytes + 1)


def store_upload(
    *,
    directory: str,
    original_name: str,
    content_type: str | None,
    data: bytes,
) -> UploadOut:
    validate_upload(directory=directory, content_type=content_type, size=len(data))

    file_name = f"{directory}/{int(time.time() * 1000)}-{_safe_file_name(original_name)}"
    target = Path(settings.upload_dir) / file_name
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)

    log_event("upload.stored", file_name=file_name, size=len(data), content_type=content_type)
    return UploadOut(
        url=f"{settings.upload_base_url.rstrip('/')}/{file_name}",
        file_name=file_name,
    )
