# tests/test_services.py

import asyncio
import base64
import io
import os
import sys

import pytest
from starlette.datastructures import Headers

# Add the parent directory to the Python path so we can import from it
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi import HTTPException, UploadFile
from pydantic import ValidationError

from config import MOCK_VIDEOS
from schemas import EncodedAsset, GenerationMode
from services import (
    AssetEncoder,
    MockCatalog,
    RequestNormalizer,
    clamp_number,
    parse_mode,
    validate_aspect_ratio,
)


def make_upload(content: bytes, content_type=None, declare_size=True):
    headers = Headers({"content-type": content_type}) if content_type else Headers({})
    return UploadFile(
        file=io.BytesIO(content),
        size=len(content) if declare_size else None,
        filename="upload.bin",
        headers=headers,
    )


@pytest.mark.parametrize("raw, expected", [
    ("6", 6), ("0", 3), ("-4", 3), ("12", 12), ("99", 12), ("4.5", 4.5),
])
def test_clamp_number_keeps_duration_in_range(raw, expected):
    assert clamp_number(raw, 3, 12, 6) == expected


@pytest.mark.parametrize("raw", [None, "", "fast", "nan", "inf", "-Infinity"])
def test_clamp_number_uses_fallback_for_non_numeric(raw):
    assert clamp_number(raw, 3, 12, 6) == 6
    assert clamp_number(raw, 1, 15, 7) == 7


@pytest.mark.parametrize("raw", ["16:9", "9:16", "1:1", "2.39:1", "1.5:2.25"])
def test_valid_aspect_ratio_passes_through(raw):
    assert validate_aspect_ratio(raw) == raw


@pytest.mark.parametrize("raw", [None, "", "wide", "16x9", "16:", ":9", "16:9:1", " 16:9", "1.:2", "-1:2"])
def test_invalid_aspect_ratio_falls_back(raw):
    assert validate_aspect_ratio(raw) == "16:9"


def test_parse_mode_is_case_insensitive():
    assert parse_mode("TEXT") is GenerationMode.TEXT
    assert parse_mode("Image") is GenerationMode.IMAGE
    assert parse_mode("reference") is GenerationMode.REFERENCE


@pytest.mark.parametrize("raw", [None, "", "audio", " text"])
def test_parse_mode_rejects_unknown_values(raw):
    with pytest.raises(HTTPException) as exc_info:
        parse_mode(raw)
    assert exc_info.value.status_code == 400
    assert "Unsupported generation mode" in exc_info.value.detail


def test_normalizer_requires_prompt_for_text_mode():
    """
    Tests that a whitespace-only prompt is rejected for text-to-video.
    """
    with pytest.raises(HTTPException) as exc_info:
        RequestNormalizer(mode="text", prompt="   ").run()
    assert "prompt is required" in exc_info.value.detail


def test_normalizer_allows_empty_prompt_for_image_mode():
    normalizer = RequestNormalizer(mode="image", prompt=None).run()
    assert normalizer.prompt == ""
    assert normalizer.mode is GenerationMode.IMAGE


def test_normalizer_trims_and_clamps():
    normalizer = RequestNormalizer(
        mode="text",
        prompt="  a lighthouse at dusk  ",
        negative_prompt="  blurry ",
        duration="40",
        guidance="abc",
        aspect_ratio="nope",
    ).run()
    request = normalizer.build()

    assert request.prompt == "a lighthouse at dusk"
    assert request.negative_prompt == "blurry"
    assert request.duration == 12
    assert request.guidance == 7
    assert request.aspect_ratio == "16:9"


def test_request_rejects_asset_for_wrong_mode():
    """
    Tests that a text request cannot carry an image and an image request needs one.
    """
    asset = EncodedAsset(data_uri="data:image/png;base64,AA==", mime_type="image/png")
    with pytest.raises(ValidationError):
        RequestNormalizer(mode="text", prompt="sky").run().build(image=asset)
    with pytest.raises(ValidationError):
        RequestNormalizer(mode="image").run().build()
    with pytest.raises(ValidationError):
        RequestNormalizer(mode="reference").run().build(image=asset)


def test_asset_encoder_builds_data_uri():
    content = b"\x89PNG fake image bytes"
    asset = asyncio.run(AssetEncoder(1024).encode(make_upload(content, "image/png")))

    expected = base64.b64encode(content).decode("ascii")
    assert asset.mime_type == "image/png"
    assert asset.data_uri == f"data:image/png;base64,{expected}"


def test_asset_encoder_defaults_mime_type():
    asset = asyncio.run(AssetEncoder(1024).encode(make_upload(b"raw")))
    assert asset.mime_type == "application/octet-stream"
    assert asset.data_uri.startswith("data:application/octet-stream;base64,")


def test_asset_encoder_rejects_oversized_upload():
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(AssetEncoder(8 * 1024 * 1024).encode(make_upload(b"x" * (8 * 1024 * 1024 + 1))))
    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "Uploaded file exceeds the allowed size of 8.0MB."


def test_asset_encoder_checks_bytes_when_size_is_unknown():
    upload = make_upload(b"x" * 11, "video/mp4", declare_size=False)
    with pytest.raises(HTTPException):
        asyncio.run(AssetEncoder(10).encode(upload))


def test_asset_encoder_accepts_upload_at_ceiling():
    asset = asyncio.run(AssetEncoder(10).encode(make_upload(b"x" * 10, "video/mp4")))
    assert asset.mime_type == "video/mp4"


@pytest.mark.parametrize("mode", ["text", "image", "reference"])
def test_mock_catalog_is_deterministic(mode):
    image = EncodedAsset(data_uri="data:image/png;base64,AA==", mime_type="image/png")
    request = RequestNormalizer(mode=mode, prompt="waves").run().build(
        image=image if mode == "image" else None,
        reference=image if mode == "reference" else None,
    )

    first = MockCatalog.result_for(request, "job_1")
    second = MockCatalog.result_for(request, "job_2")

    assert first.status == "mock"
    assert first.video_url == MOCK_VIDEOS[mode]["video_url"]
    assert first.poster_url == MOCK_VIDEOS[mode]["poster_url"]
    assert (first.video_url, first.poster_url) == (second.video_url, second.poster_url)
    assert first.metadata.duration == 6
    assert first.metadata.guidance == 7
    assert first.metadata.aspect_ratio == "16:9"


def test_clamp_number_keeps_whole_values_as_ints():
    """
    Tests that whole results are ints, so the response shows 6 rather than 6.0.
    """
    assert isinstance(clamp_number("6", 3, 12, 6), int)
    assert isinstance(clamp_number("6.0", 3, 12, 6), int)
    assert isinstance(clamp_number("99.5", 3, 12, 6), int)
    assert isinstance(clamp_number("4.5", 3, 12, 6), float)


def test_metadata_serializes_whole_numbers_without_decimals():
    request = RequestNormalizer(mode="text", prompt="tide", guidance="7.25").run().build()
    metadata = MockCatalog.result_for(request, "job_1").metadata.model_dump_json(by_alias=True)
    assert metadata == '{"duration":6,"aspectRatio":"16:9","guidance":7.25}'
