import base64
import binascii
import re
from pydantic import BaseModel, Field, field_validator

DATA_URI_PATTERN = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<payload>.+)$", re.DOTALL)


def split_data_uri(data_uri: str) -> tuple:
    """Return (mime_type, base64_payload) for a data URI, or raise ValueError."""
    match = DATA_URI_PATTERN.match(data_uri)
    if not match:
        raise ValueError("photo must be a data URI of the form 'data:<mimetype>;base64,<encoded_data>'")
    payload = match.group("payload")
    try:
        base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError("photo payload is not valid base64") from e
    return match.group("mime"), payload


class AnalyzePlantPhotoInput(BaseModel):
    photo_data_uri: str = Field(
        description="A photo of a plant as a data URI with a MIME type and base64 payload: "
                    "'data:<mimetype>;base64,<encoded_data>'."
    )

    @field_validator("photo_data_uri")
    @classmethod
    def must_be_base64_data_uri(cls, value: str) -> str:
        split_data_uri(value)
        return value


class AnalyzePlantPhotoOutput(BaseModel):
    analysis_result: str = Field(
        description="A short description of potential problems identified in the plant photo."
    )
