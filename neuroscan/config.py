import logging
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash-image"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024
DEFAULT_MIME_PREFIXES = ("image/",)
DOWNLOAD_FILENAME = "analysis-result.png"


@dataclass
class Settings:
    api_key: str = ""
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    allowed_mime_prefixes: Tuple[str, ...] = field(default=DEFAULT_MIME_PREFIXES)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """
        Build settings from the process environment, after loading `.env` if present.

        A missing API key is reported but not fatal: the UI still loads and
        only the remote calls fail.
        """
        load_dotenv(env_file)

        api_key = os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY") or ""
        if not api_key:
            logger.error("API key is missing in the environment variables (GEMINI_API_KEY / API_KEY).")

        return cls(
            api_key=api_key.strip(),
            model=os.environ.get("GEMINI_MODEL", DEFAULT_MODEL),
            base_url=os.environ.get("GEMINI_BASE_URL", DEFAULT_BASE_URL),
            max_upload_bytes=int(os.environ.get("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES)),
            log_level=os.environ.get("NEUROSCAN_LOG_LEVEL", "INFO").upper(),
        )
