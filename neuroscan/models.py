import io
import uuid
from os import PathLike
from pathlib import Path
from typing import Annotated, List, Optional, Union

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import HandleReleasedError
from .utils import guess_mime_type


class EncodedImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: str
    mime_type: str

    @field_validator("data")
    @classmethod
    def _payload_only(cls, value: str) -> str:
        if value.startswith("data:"):
            raise ValueError("encoded data must not carry a data: URI prefix")
        return value


# ----------------------------- generateContent wire models -----------------------------

class InlineData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    mime_type: Optional[str] = Field(default=None, alias="mimeType")
    data: str = ""


class ImagePart(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    inline_data: InlineData = Field(alias="inlineData")


class TextPart(BaseModel):
    text: str


class OtherPart(BaseModel):
    # thought signatures, function calls and other parts the editor ignores
    model_config = ConfigDict(extra="allow")


Part = Annotated[Union[ImagePart, TextPart, OtherPart], Field(union_mode="left_to_right")]


class Content(BaseModel):
    role: Optional[str] = None
    parts: Optional[List[Part]] = None


class Candidate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: Optional[Content] = None
    finish_reason: Optional[str] = Field(default=None, alias="finishReason")


class GenerateContentRequest(BaseModel):
    contents: List[Content]

    @classmethod
    def for_edit(cls, image: EncodedImage, instruction: str) -> "GenerateContentRequest":
        # image first, instruction second
        parts = [
            ImagePart(inline_data=InlineData(mime_type=image.mime_type, data=image.data)),
            TextPart(text=instruction),
        ]
        return cls(contents=[Content(role="user", parts=parts)])


class GenerateContentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    candidates: Optional[List[Candidate]] = None
    model_version: Optional[str] = Field(default=None, alias="modelVersion")

    def first_parts(self) -> Optional[List[Part]]:
        """Parts of the first candidate, or None when the response carries no parts field."""
        if not self.candidates:
            return None
        content = self.candidates[0].content
        if content is None:
            return None
        return content.parts


# ----------------------------- local resources -----------------------------

class ImageResource:
    """A resource handed over by the file picker: declared type and size, content read on demand."""

    def __init__(self, source: Union[str, PathLike, bytes], mime_type: str, name: Optional[str] = None):
        self.source = source
        self.mime_type = mime_type
        if name is None:
            name = "upload" if isinstance(source, bytes) else Path(source).name
        self.name = name

    @classmethod
    def from_path(cls, path: Union[str, PathLike]) -> "ImageResource":
        return cls(path, guess_mime_type(path, fallback="application/octet-stream"))

    @property
    def size(self) -> int:
        if isinstance(self.source, bytes):
            return len(self.source)
        return Path(self.source).stat().st_size

    def read(self) -> bytes:
        if isinstance(self.source, bytes):
            return self.source
        with open(self.source, "rb") as f:
            return f.read()

    def __repr__(self) -> str:
        return f"ImageResource(name={self.name!r}, mime_type={self.mime_type!r})"


class DisplayableImage:
    def __init__(self, content: bytes, mime_type: str = "image/png"):
        self.handle_id = uuid.uuid4().hex
        self.mime_type = mime_type
        self._content: Optional[bytes] = content
        self._image: Optional[Image.Image] = None

    @property
    def released(self) -> bool:
        return self._content is None

    @property
    def content(self) -> bytes:
        if self._content is None:
            raise HandleReleasedError(self.handle_id)
        return self._content

    def to_pil(self) -> Image.Image:
        if self._image is None:
            self._image = Image.open(io.BytesIO(self.content))
        return self._image

    def release(self) -> None:
        if self._image is not None:
            self._image.close()
            self._image = None
        self._content = None

    def __repr__(self) -> str:
        state = "released" if self.released else f"{len(self._content)} bytes"
        return f"DisplayableImage({self.handle_id[:8]}, {self.mime_type}, {state})"
