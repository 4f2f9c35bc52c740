"""
Pydantic models for data validation in the Video Studio backend.
"""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

# whole numbers stay ints so metadata echoes "6", not "6.0"
Number = Union[int, float]


class GenerationMode(str, Enum):
    """The three creative entry points of the studio."""
    TEXT = "text"
    IMAGE = "image"
    REFERENCE = "reference"


class EncodedAsset(BaseModel):
    """An uploaded file wrapped as a base64 data URI."""
    model_config = ConfigDict(frozen=True)

    data_uri: str
    mime_type: str


class GenerationRequest(BaseModel):
    """Normalized generation request, built from the multipart form."""
    model_config = ConfigDict(frozen=True)

    mode: GenerationMode
    prompt: str = ""
    negative_prompt: str = ""
    duration: Number
    guidance: Number
    aspect_ratio: str
    image: Optional[EncodedAsset] = None
    reference: Optional[EncodedAsset] = None

    @model_validator(mode="after")
    def _asset_matches_mode(self):
        expected = {
            GenerationMode.TEXT: (False, False),
            GenerationMode.IMAGE: (True, False),
            GenerationMode.REFERENCE: (False, True),
        }[self.mode]
        if (self.image is not None, self.reference is not None) != expected:
            raise ValueError(f"Assets do not match generation mode '{self.mode.value}'.")
        return self


class GenerationMetadata(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    duration: Number
    aspect_ratio: str = Field(alias="aspectRatio")
    guidance: Number


class GenerationResult(BaseModel):
    """Response body for a finished (or mocked) generation."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    job_id: str = Field(alias="jobId")
    video_url: str = Field(alias="videoUrl")
    poster_url: Optional[str] = Field(default=None, alias="posterUrl")
    mode: GenerationMode
    prompt: str
    status: str  # "completed" | "mock"
    metadata: GenerationMetadata


class ErrorResponse(BaseModel):
    """Response body for any failed request."""
    error: str
