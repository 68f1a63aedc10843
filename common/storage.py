"""
Object storage adapter for uploaded files (incident photos, complaint evidence).

Files are saved through Django's default_storage, so the backend (local
filesystem, S3, ...) is a settings concern.
"""
import logging
import mimetypes
import os
import uuid
from dataclasses import dataclass, asdict

from django.core.files.storage import default_storage
from django.utils import timezone

from core.constants import FileKind
from core.exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass
class UploadedFileInfo:
    url: str
    file_name: str
    file_type: str
    file_size: int
    mime_type: str

    def as_dict(self):
        return asdict(self)


def guess_mime_type(uploaded_file) -> str:
    mime_type = getattr(uploaded_file, 'content_type', None)
    if not mime_type:
        mime_type, _ = mimetypes.guess_type(uploaded_file.name)
    return mime_type or 'application/octet-stream'


def file_kind(mime_type: str):
    """'image', 'audio' or 'video' for a mime type, None for anything else"""
    kind = (mime_type or '').split('/', 1)[0]
    return kind if kind in FileKind.ALL else None


def format_size(size: int) -> str:
    return f"{size / (1024 * 1024):.0f}MB"


def validate_upload(uploaded_file, allowed_kinds, max_size):
    """Check type and size; returns (kind, mime_type)"""
    mime_type = guess_mime_type(uploaded_file)
    kind = file_kind(mime_type)
    if kind not in allowed_kinds:
        raise ValidationError(
            f"Unsupported file type for {uploaded_file.name}: allowed {', '.join(allowed_kinds)}",
            code="INVALID_FILE_TYPE",
            details={"file_name": uploaded_file.name, "mime_type": mime_type},
        )
    if uploaded_file.size > max_size:
        raise ValidationError(
            f"{uploaded_file.name} exceeds the maximum size of {format_size(max_size)}",
            code="FILE_TOO_LARGE",
            details={"file_name": uploaded_file.name, "max_size": max_size},
        )
    return kind, mime_type


def upload_file(uploaded_file, folder, allowed_kinds=FileKind.ALL, max_size=None) -> UploadedFileInfo:
    """
    Validate and store one uploaded file.

    Args:
        uploaded_file: Django UploadedFile
        folder: Storage folder, e.g. 'incidents' or 'complaints/12'
        allowed_kinds: Accepted file kinds (FileKind values)
        max_size: Maximum size in bytes, None for no limit

    Returns:
        UploadedFileInfo of the stored file

    Raises:
        ValidationError: on a wrong type or an oversized file
    """
    kind, mime_type = validate_upload(uploaded_file, allowed_kinds, max_size or uploaded_file.size)

    extension = os.path.splitext(uploaded_file.name)[1].lower()
    path = f"{folder}/{timezone.now():%Y/%m}/{uuid.uuid4().hex}{extension}"
    stored_path = default_storage.save(path, uploaded_file)
    logger.info(f"Stored upload {uploaded_file.name} at {stored_path}")

    return UploadedFileInfo(
        url=default_storage.url(stored_path),
        file_name=uploaded_file.name,
        file_type=kind,
        file_size=uploaded_file.size,
        mime_type=mime_type,
    )
