from typing import Optional


def _format_size(num_bytes: int) -> str:
    if num_bytes >= 1024 * 1024:
        return f"{num_bytes / (1024 * 1024):g}MB"
    if num_bytes >= 1024:
        return f"{num_bytes / 1024:g}KB"
    return f"{num_bytes} bytes"


class NeuroScanError(Exception):
    """Base exception for the neuroscan package."""


class ImageValidationError(NeuroScanError):
    """The selected resource was rejected before any remote call."""


class InvalidTypeError(ImageValidationError):
    def __init__(self, mime_type: str):
        super().__init__("Please upload a valid image file.")
        self.mime_type = mime_type


class TooLargeError(ImageValidationError):
    def __init__(self, size: int, limit: int):
        super().__init__(f"Image size too large. Please use an image under {_format_size(limit)}.")
        self.size = size
        self.limit = limit


class EditError(NeuroScanError):
    """The remote edit call did not produce an image."""


class ModelRefusedError(EditError):
    """The model answered with text only; `text` holds its explanation verbatim."""

    def __init__(self, text: str):
        super().__init__(f"Model returned text instead of image: {text}")
        self.text = text


class EmptyResponseError(EditError):
    def __init__(self):
        super().__init__("No image data found in response.")


class NoContentError(EditError):
    def __init__(self):
        super().__init__("No content returned from Gemini.")


class TransportError(EditError):
    """Network error, non-success status or unreadable body. Never retried."""

    def __init__(self, cause: Optional[BaseException] = None, message: Optional[str] = None):
        if not message and cause is not None:
            message = str(cause)
        super().__init__(message or "Request to the image model failed.")
        self.cause = cause


class HandleReleasedError(NeuroScanError):
    def __init__(self, handle_id: str):
        super().__init__(f"Image handle {handle_id} has already been released")
        self.handle_id = handle_id
