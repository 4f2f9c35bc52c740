"""
Service classes for the Video Studio backend.
Contains the request normalizer, the asset encoder and the mock catalog.
"""

import base64
import logging
import math
import re
from typing import Optional

from fastapi import HTTPException, UploadFile

from config import (
    DEFAULT_ASPECT_RATIO,
    DEFAULT_DURATION,
    DEFAULT_GUIDANCE,
    DEFAULT_MIME_TYPE,
    DURATION_RANGE,
    GUIDANCE_RANGE,
    MOCK_VIDEOS,
)
from schemas import (
    EncodedAsset,
    GenerationMetadata,
    GenerationMode,
    GenerationRequest,
    GenerationResult,
    Number,
)

ASPECT_RATIO_PATTERN = re.compile(r"[0-9]+(\.[0-9]+)?:[0-9]+(\.[0-9]+)?")


def _bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=400, detail=message)


def parse_mode(raw: Optional[str]) -> GenerationMode:
    normalized = (raw or "").lower()
    try:
        return GenerationMode(normalized)
    except ValueError:
        raise _bad_request("Unsupported generation mode.")


def clamp_number(raw: Optional[str], minimum: float, maximum: float, fallback: float) -> Number:
    """
    Parse ``raw`` as a number and clamp it; anything non-finite yields ``fallback``.
    Whole results come back as ints so they serialize as ``6`` rather than ``6.0``.
    """
    try:
        numeric = float(raw)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(numeric):
        return fallback
    clamped = float(min(maximum, max(minimum, numeric)))
    return int(clamped) if clamped.is_integer() else clamped


def validate_aspect_ratio(raw: Optional[str]) -> str:
    if raw and ASPECT_RATIO_PATTERN.fullmatch(raw):
        return raw
    return DEFAULT_ASPECT_RATIO


class RequestNormalizer:
    """Turns raw multipart form fields into a validated generation request."""

    def __init__(
        self,
        mode: Optional[str] = None,
        prompt: Optional[str] = None,
        negative_prompt: Optional[str] = None,
        duration: Optional[str] = None,
        guidance: Optional[str] = None,
        aspect_ratio: Optional[str] = None,
    ):
        self.raw_mode = mode
        self.raw_prompt = prompt
        self.raw_negative_prompt = negative_prompt
        self.raw_duration = duration
        self.raw_guidance = guidance
        self.raw_aspect_ratio = aspect_ratio

    def run(self) -> "RequestNormalizer":
        self.mode = parse_mode(self.raw_mode)
        self.prompt = (self.raw_prompt or "").strip()
        self.negative_prompt = (self.raw_negative_prompt or "").strip()
        self.duration = clamp_number(self.raw_duration, *DURATION_RANGE, DEFAULT_DURATION)
        self.guidance = clamp_number(self.raw_guidance, *GUIDANCE_RANGE, DEFAULT_GUIDANCE)
        self.aspect_ratio = validate_aspect_ratio(self.raw_aspect_ratio)

        if self.mode is GenerationMode.TEXT and not self.prompt:
            raise _bad_request(
                "A descriptive prompt is required for text-to-video generations."
            )
        return self

    def build(
        self,
        image: Optional[EncodedAsset] = None,
        reference: Optional[EncodedAsset] = None,
    ) -> GenerationRequest:
        return GenerationRequest(
            mode=self.mode,
            prompt=self.prompt,
            negative_prompt=self.negative_prompt,
            duration=self.duration,
            guidance=self.guidance,
            aspect_ratio=self.aspect_ratio,
            image=image,
            reference=reference,
        )


class AssetEncoder:
    """Reads an upload and wraps it as a size-checked base64 data URI."""

    def __init__(self, max_bytes: int):
        self.max_bytes = max_bytes

    def _too_large(self) -> HTTPException:
        megabytes = self.max_bytes / (1024 * 1024)
        return _bad_request(f"Uploaded file exceeds the allowed size of {megabytes:.1f}MB.")

    async def encode(self, upload: UploadFile) -> EncodedAsset:
        if upload.size is not None and upload.size > self.max_bytes:
            raise self._too_large()

        content = await upload.read()
        if len(content) > self.max_bytes:
            raise self._too_large()

        mime_type = upload.content_type or DEFAULT_MIME_TYPE
        payload = base64.b64encode(content).decode("ascii")
        logging.info(f"📦 Encoded upload '{upload.filename}' ({len(content)} bytes, {mime_type})")
        return EncodedAsset(data_uri=f"data:{mime_type};base64,{payload}", mime_type=mime_type)


def build_metadata(request: GenerationRequest) -> GenerationMetadata:
    return GenerationMetadata(
        duration=request.duration,
        aspect_ratio=request.aspect_ratio,
        guidance=request.guidance,
    )


class MockCatalog:
    """Static placeholder videos, one per mode."""

    @staticmethod
    def result_for(request: GenerationRequest, job_id: str) -> GenerationResult:
        entry = MOCK_VIDEOS[request.mode.value]
        return GenerationResult(
            job_id=job_id,
            video_url=entry["video_url"],
            poster_url=entry["poster_url"],
            mode=request.mode,
            prompt=request.prompt,
            status="mock",
            metadata=build_metadata(request),
        )
