# Media: uploaded attachments to self-contained data URLs

import re
import base64
import asyncio
import binascii
import logging
from typing import List, Optional, Sequence, Tuple

from .config import MAX_MEDIA_BYTES
from .errors import EncodingError

logger = logging.getLogger(__name__)

ALLOWED_MEDIA_PREFIXES = ("image/", "video/")

_DATA_URL_RE = re.compile(r"^data:(?P<type>[\w.+-]+/[\w.+-]+);base64,(?P<payload>.*)$", re.DOTALL)


def to_data_url(content_type: str, data: bytes) -> str:
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


def parse_data_url(url: str) -> Tuple[str, bytes]:
    m = _DATA_URL_RE.match(url or "")
    if not m:
        raise ValueError("Not a base64 data URL")
    try:
        return m.group("type"), base64.b64decode(m.group("payload"), validate=True)
    except binascii.Error as e:
        raise ValueError(f"Bad base64 payload: {e}")


def is_video(url: str) -> bool:
    return (url or "").startswith("data:video")


def _is_empty_part(upload) -> bool:
    # Browsers send an unnamed, empty part when no file is chosen
    return not getattr(upload, "filename", None)


async def encode_upload(upload, max_bytes: Optional[int] = None) -> str:
    """Read one uploaded file and return it as a data URL."""
    limit = MAX_MEDIA_BYTES if max_bytes is None else max_bytes
    filename = getattr(upload, "filename", "") or ""
    content_type = (getattr(upload, "content_type", "") or "").lower()
    if not content_type.startswith(ALLOWED_MEDIA_PREFIXES):
        raise EncodingError(filename, f"unsupported type {content_type or 'unknown'}")
    try:
        data = await upload.read()
    except Exception as e:
        raise EncodingError(filename, f"read failed: {e}")
    if len(data) > limit:
        raise EncodingError(filename, f"{len(data)} bytes exceeds the {limit} byte limit")
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, to_data_url, content_type, data)


async def encode_media(uploads: Sequence, max_bytes: Optional[int] = None) -> List[str]:
    """Encode every selected file, keeping input order.

    All-or-nothing: if any file fails, EncodingError is raised and no
    partial list is returned.
    """
    selected = [u for u in uploads or [] if not _is_empty_part(u)]
    if not selected:
        return []
    results = await asyncio.gather(*(encode_upload(u, max_bytes) for u in selected),
                                   return_exceptions=True)
    for upload, result in zip(selected, results):
        if isinstance(result, BaseException):
            logger.warning("Attachment %s rejected: %s", getattr(upload, "filename", "?"), result)
            if isinstance(result, EncodingError):
                raise result
            raise EncodingError(getattr(upload, "filename", ""), str(result))
    logger.info("Encoded %d attachment(s)", len(results))
    return list(results)
