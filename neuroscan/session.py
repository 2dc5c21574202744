import logging
from dataclasses import dataclass
from enum import Enum
from os import PathLike
from pathlib import Path
from typing import Callable, List, Optional, Union

from . import codec
from .config import DOWNLOAD_FILENAME, Settings
from .edit_client import ImageEditClient
from .errors import EditError, ImageValidationError
from .models import DisplayableImage, EncodedImage, ImageResource

logger = logging.getLogger(__name__)

GENERIC_EDIT_ERROR = "Failed to edit image. The model might be busy or the request invalid."
GENERIC_UPLOAD_ERROR = "Failed to process image. Please try again."


class AppStatus(str, Enum):
    IDLE = "IDLE"
    UPLOADING = "UPLOADING"
    PROCESSING = "PROCESSING"
    COMPLETE = "COMPLETE"
    ERROR = "ERROR"  # declared, never entered: failures return to IDLE with error_message set


BUSY = (AppStatus.UPLOADING, AppStatus.PROCESSING)


@dataclass
class OriginalImage:
    encoded: EncodedImage
    display: DisplayableImage


class EditSession:
    """
    State of one upload/edit interaction.

    Owns the display handles of the original and generated images and
    releases each of them when it is replaced or when the session is reset.
    Remote and codec failures never escape: they end up in ``error_message``.
    """

    def __init__(self, client: ImageEditClient, settings: Optional[Settings] = None):
        self.client = client
        self.settings = settings or Settings()
        self.original: Optional[OriginalImage] = None
        self.generated: Optional[DisplayableImage] = None
        self.instruction = ""
        self.error_message: Optional[str] = None
        self._status = AppStatus.IDLE
        self._listeners: List[Callable[[AppStatus], None]] = []

    # ----------------------------- status -----------------------------

    @property
    def status(self) -> AppStatus:
        return self._status

    def _set_status(self, status: AppStatus) -> None:
        logger.debug("Session status %s -> %s", self._status.value, status.value)
        self._status = status
        for listener in list(self._listeners):
            listener(status)

    def add_listener(self, callback: Callable[[AppStatus], None]) -> None:
        self._listeners.append(callback)

    @property
    def can_generate(self) -> bool:
        return (
            self.original is not None
            and bool(self.instruction.strip())
            and self._status not in BUSY
        )

    # ----------------------------- events -----------------------------

    def select_image(self, resource: ImageResource) -> bool:
        if self._status in BUSY:
            logger.warning("Ignoring image selection while %s", self._status.value)
            return False

        limits = dict(
            size_limit=self.settings.max_upload_bytes,
            allowed_mime_prefixes=self.settings.allowed_mime_prefixes
        )
        try:
            codec.validate(resource, **limits)
        except ImageValidationError as e:
            # status and images stay as they are, so a COMPLETE session can carry this message
            logger.warning("Rejected %r: %s", resource, e)
            self.error_message = str(e)
            return False
        except OSError as e:
            logger.warning("Could not stat %r: %s", resource, e)
            self.error_message = GENERIC_UPLOAD_ERROR
            return False

        self._set_status(AppStatus.UPLOADING)
        self.error_message = None
        self._release_generated()

        try:
            encoded = codec.encode(resource, **limits)
        except (ImageValidationError, OSError) as e:
            logger.warning("Could not read %r: %s", resource, e)
            self.error_message = GENERIC_UPLOAD_ERROR
            self._set_status(AppStatus.IDLE)
            return False

        # display bytes come from the encoded payload, so the resource is read once
        display = codec.decode(encoded.data, encoded.mime_type)
        if self.original is not None:
            codec.release(self.original.display)
        self.original = OriginalImage(encoded=encoded, display=display)

        self._set_status(AppStatus.IDLE)
        return True

    def set_instruction(self, text: str) -> None:
        self.instruction = text

    def generate(self, instruction: Optional[str] = None) -> bool:
        if self._status in BUSY:
            logger.warning("Ignoring generate() while %s", self._status.value)
            return False
        if instruction is not None:
            self.instruction = instruction
        if not self.can_generate:
            return False

        self._set_status(AppStatus.PROCESSING)
        self.error_message = None
        self._release_generated()

        try:
            result = self.client.edit_image(self.original.encoded, self.instruction)
            generated = codec.decode(result.data, result.mime_type)
        except (EditError, ValueError) as e:
            logger.warning("Edit failed: %s", e)
            self.error_message = str(e) or GENERIC_EDIT_ERROR
            self._set_status(AppStatus.IDLE)
            return False

        self.generated = generated
        self._set_status(AppStatus.COMPLETE)
        return True

    def reset(self) -> None:
        if self.original is not None:
            codec.release(self.original.display)
        self.original = None
        self._release_generated()
        self.instruction = ""
        self.error_message = None
        self._set_status(AppStatus.IDLE)

    def save_result(self, path: Union[str, PathLike] = DOWNLOAD_FILENAME) -> Optional[Path]:
        if self.generated is None:
            raise ValueError("There is no generated image to save")
        try:
            return codec.save(self.generated, path)
        except OSError as e:
            logger.warning("Could not save result to %s: %s", path, e)
            self.error_message = f"Could not save the result: {e.strerror or e}"
            return None

    def _release_generated(self) -> None:
        codec.release(self.generated)
        self.generated = None
