"""Write-once blob store for payment screenshots.

Blobs live under ``UPLOAD_DIR`` and are referenced as ``/uploads/<name>``.
"""
import logging
import os
import re
import secrets
import time
from typing import Optional

from fastapi import UploadFile

from .config import get_settings
from .errors import PayloadTooLarge

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads/"


def clean_filename(filename: str) -> str:
    name = os.path.basename(filename or "").strip()
    name = re.sub(r"\s+", "_", name)
    name = re.sub(r"[^A-Za-z0-9._-]", "", name)
    return name.lstrip(".") or "upload"


async def read_upload(upload: Optional[UploadFile], max_bytes: Optional[int] = None) -> Optional[tuple[str, bytes]]:
    """Read an optional multipart file, refusing anything over the size limit."""
    if upload is None or not upload.filename:
        return None
    limit = max_bytes if max_bytes is not None else get_settings().max_upload_bytes
    data = await upload.read(limit + 1)
    if len(data) > limit:
        raise PayloadTooLarge()
    if not data:
        return None
    return upload.filename, data


def save_blob(filename: str, data: bytes) -> str:
    upload_dir = get_settings().upload_dir
    os.makedirs(upload_dir, exist_ok=True)
    name = f"{int(time.time() * 1000)}-{secrets.token_hex(4)}-{clean_filename(filename)}"
    # "x" mode: an existing blob is never overwritten
    with open(os.path.join(upload_dir, name), "xb") as fh:
        fh.write(data)
    return URL_PREFIX + name


def blob_path(reference: str) -> Optional[str]:
    if not reference or not reference.startswith(URL_PREFIX):
        return None
    name = os.path.basename(reference[len(URL_PREFIX):])
    return os.path.join(get_settings().upload_dir, name)


def discard_blob(reference: Optional[str]) -> None:
    path = blob_path(reference) if reference else None
    if not path:
        return
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError:
        logger.warning("could not discard orphaned blob %s", reference)
