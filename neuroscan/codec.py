"""
Conversion between picked image resources, base64 payloads and display handles.

Payloads travel inline in a JSON request body, so every image going to the
model is base64 text without any ``data:`` framing, and every image coming
back is decoded into a :class:`DisplayableImage` owned by the caller.
"""

import base64
import logging
from os import PathLike
from pathlib import Path
from typing import Iterable, Optional, Union

from .config import DEFAULT_MAX_UPLOAD_BYTES, DEFAULT_MIME_PREFIXES, DOWNLOAD_FILENAME
from .errors import InvalidTypeError, TooLargeError
from .models import DisplayableImage, EncodedImage, ImageResource

logger = logging.getLogger(__name__)


def validate(
        resource: ImageResource,
        size_limit: int = DEFAULT_MAX_UPLOAD_BYTES,
        allowed_mime_prefixes: Iterable[str] = DEFAULT_MIME_PREFIXES
) -> None:
    """Check declared type, then declared size. Nothing is read."""
    mime_type = resource.mime_type or ""
    if not any(mime_type.startswith(prefix) for prefix in allowed_mime_prefixes):
        raise InvalidTypeError(mime_type)

    size = resource.size
    if size > size_limit:
        raise TooLargeError(size, size_limit)


def encode(
        resource: ImageResource,
        size_limit: int = DEFAULT_MAX_UPLOAD_BYTES,
        allowed_mime_prefixes: Iterable[str] = DEFAULT_MIME_PREFIXES
) -> EncodedImage:
    """
    Validate a picked resource and return its base64 payload.

    Raises:
        InvalidTypeError: declared type does not start with an allowed prefix.
        TooLargeError: declared size exceeds ``size_limit``.
        OSError: the content could not be read.
    """
    validate(resource, size_limit, allowed_mime_prefixes)

    raw = resource.read()
    logger.debug("Encoded %s (%s, %d bytes)", resource.name, resource.mime_type, len(raw))
    return EncodedImage(data=base64.b64encode(raw).decode("ascii"), mime_type=resource.mime_type)


def wrap(content: bytes, mime_type: str = "image/png") -> DisplayableImage:
    return DisplayableImage(content, mime_type)


def decode(data: str, mime_type: str = "image/png") -> DisplayableImage:
    # malformed base64 raises binascii.Error (a ValueError); callers pass model output
    return wrap(base64.b64decode(data), mime_type)


def release(handle: Optional[DisplayableImage]) -> None:
    if handle is None or handle.released:
        return
    logger.debug("Releasing %r", handle)
    handle.release()


def save(handle: DisplayableImage, path: Union[str, PathLike] = DOWNLOAD_FILENAME) -> Path:
    path = Path(path)
    path.write_bytes(handle.content)
    logger.info("Saved %s to %s", handle.mime_type, path)
    return path
