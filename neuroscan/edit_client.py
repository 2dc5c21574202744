import logging
from typing import Optional

import requests

from .config import DEFAULT_BASE_URL, DEFAULT_MODEL
from .errors import EmptyResponseError, ModelRefusedError, NoContentError, TransportError
from .models import EncodedImage, GenerateContentRequest, GenerateContentResponse, ImagePart, TextPart
from .utils import log_and_raise_for_status

logger = logging.getLogger(__name__)


def extract_image(response: GenerateContentResponse) -> EncodedImage:
    """
    Pick the edited image out of a model response.

    The first part carrying a non-empty inline payload wins. A text-only answer
    is surfaced as ModelRefusedError with the model's text.
    """
    parts = response.first_parts()
    if parts is None:
        raise NoContentError()

    for part in parts:
        if isinstance(part, ImagePart) and part.inline_data.data:
            return EncodedImage(
                data=part.inline_data.data,
                mime_type=part.inline_data.mime_type or "image/png"
            )

    text_part = next((p for p in parts if isinstance(p, TextPart) and p.text), None)
    if text_part is not None:
        raise ModelRefusedError(text_part.text)

    raise EmptyResponseError()


class ImageEditClient:
    def __init__(
            self,
            api_key: str,
            model: str = DEFAULT_MODEL,
            base_url: str = DEFAULT_BASE_URL,
            session: Optional[requests.Session] = None
    ):
        self.model = model
        self.base_url = f"{base_url.rstrip('/')}/models/{model}"
        self.session = session or requests.Session()
        self.session.headers.update({"x-goog-api-key": api_key})

    def edit_image(self, image: EncodedImage, instruction: str) -> EncodedImage:
        request = GenerateContentRequest.for_edit(image, instruction)
        logger.info(
            "Editing image with %s (%s, %d base64 chars)", self.model, image.mime_type, len(image.data)
        )

        try:
            response = self.session.post(
                f"{self.base_url}:generateContent",
                data=request.model_dump_json(by_alias=True, exclude_none=True),
                headers={"Content-Type": "application/json"}
            )
            log_and_raise_for_status(response)
            payload = GenerateContentResponse.model_validate(response.json())
        except (requests.RequestException, ValueError) as e:
            # ValueError covers undecodable JSON and pydantic ValidationError
            logger.exception("Gemini API error")
            raise TransportError(e) from e

        return extract_image(payload)

    def check_model(self) -> dict:
        try:
            response = self.session.get(self.base_url)
            log_and_raise_for_status(response)
            return response.json()
        except (requests.RequestException, ValueError) as e:
            raise TransportError(e) from e
