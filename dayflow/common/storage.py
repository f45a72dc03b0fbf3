"""Local-disk file storage for uploads (profile pictures, logos, leave attachments).

Files land under ``settings.UPLOAD_DIR/<folder>/`` with UUID-only names and
are served by the StaticFiles mount at ``settings.UPLOAD_URL_PREFIX``.
"""

from __future__ import annotations

import logging
import os
import uuid
from typing import Iterable

from fastapi import UploadFile

from dayflow.common.exceptions import ValidationException
from dayflow.config import settings

logger = logging.getLogger(__name__)

# Stored extension per accepted content type; the client filename is never used
EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "application/pdf": ".pdf",
}
IMAGE_TYPES = frozenset(t for t in EXTENSIONS if t.startswith("image/"))
DOCUMENT_TYPES = frozenset(EXTENSIONS)


def _max_upload_bytes() -> int:
    return settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024


async def save_upload(
    file: UploadFile,
    folder: str,
    allowed_types: Iterable[str] = DOCUMENT_TYPES,
) -> str:
    """Validate and persist *file*; return its public URL."""
    allowed = set(allowed_types) & DOCUMENT_TYPES
    if file.content_type not in allowed:
        raise ValidationException(
            {"file": [f"File type '{file.content_type}' is not allowed."]}
        )

    contents = await file.read()
    if not contents:
        raise ValidationException({"file": ["File is empty."]})
    if len(contents) > _max_upload_bytes():
        raise ValidationException(
            {"file": [f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE_MB} MB."]}
        )

    upload_dir = os.path.join(settings.UPLOAD_DIR, folder)
    os.makedirs(upload_dir, exist_ok=True)

    safe_name = f"{uuid.uuid4().hex}{EXTENSIONS[file.content_type]}"
    with open(os.path.join(upload_dir, safe_name), "wb") as f:
        f.write(contents)

    logger.info("Stored upload %s/%s (%d bytes)", folder, safe_name, len(contents))
    return f"{settings.UPLOAD_URL_PREFIX}/{folder}/{safe_name}"
