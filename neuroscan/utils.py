import logging
import mimetypes
from os import PathLike
from typing import Union

import requests

logger = logging.getLogger(__name__)


def guess_mime_type(path: Union[str, PathLike], fallback: str = "application/octet-stream") -> str:
    mime_type, _ = mimetypes.guess_type(str(path))
    return mime_type or fallback


def log_and_raise_for_status(response: requests.Response) -> None:
    try:
        response.raise_for_status()
    except requests.HTTPError as e:
        logger.error("Request failed: %s", e)
        logger.error("Response content: %s", response.content.decode("utf-8", errors="replace")[:500])
        raise
