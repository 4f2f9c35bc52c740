"""
Configuration file for the Video Studio backend.
Contains global constants and the provider settings loaded from the environment.
"""

import os
from typing import List

from pydantic import BaseModel

# --- Provider Endpoints ---
FAL_VIDEO_URL = "https://fal.run/fal-ai/flux-pro/video"
REPLICATE_PREDICTIONS_URL = "https://api.replicate.com/v1/predictions"
REPLICATE_MODEL = "luma-labs/luma-ray-2"
PROVIDER_TIMEOUT_SECONDS = 180

# --- Request Limits ---
DURATION_RANGE = (3, 12)
DEFAULT_DURATION = 6
GUIDANCE_RANGE = (1, 15)
DEFAULT_GUIDANCE = 7
DEFAULT_ASPECT_RATIO = "16:9"

IMAGE_MAX_BYTES = 8 * 1024 * 1024
REFERENCE_MAX_BYTES = 25 * 1024 * 1024
DEFAULT_MIME_TYPE = "application/octet-stream"

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"

# --- Mock Catalog ---
MOCK_VIDEOS = {
    "text": {
        "video_url": "https://storage.googleapis.com/coverr-main/mp4/Mt_Baker.mp4",
        "poster_url": "https://images.unsplash.com/photo-1500530855697-b586d89ba3ee?auto=format&fit=crop&w=1200&q=80",
    },
    "image": {
        "video_url": "https://storage.googleapis.com/coverr-main/mp4/Night_Sky.mp4",
        "poster_url": "https://images.unsplash.com/photo-1489515217757-5fd1be406fef?auto=format&fit=crop&w=1200&q=80",
    },
    "reference": {
        "video_url": "https://storage.googleapis.com/coverr-main/mp4/Lighthouse.mp4",
        "poster_url": "https://images.unsplash.com/photo-1500530855697-b586d89ba3ee?auto=format&fit=crop&w=1200&q=80",
    },
}


def _env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


class ProviderSettings(BaseModel):
    """Provider credentials and endpoints, read once when the app starts."""

    fal_key: str = ""
    replicate_token: str = ""
    fal_video_url: str = FAL_VIDEO_URL
    replicate_predictions_url: str = REPLICATE_PREDICTIONS_URL
    replicate_model: str = REPLICATE_MODEL
    timeout_seconds: float = PROVIDER_TIMEOUT_SECONDS
    cors_origins: List[str] = DEFAULT_CORS_ORIGINS.split(",")

    @classmethod
    def from_env(cls) -> "ProviderSettings":
        try:
            timeout = float(_env("PROVIDER_TIMEOUT_SECONDS") or PROVIDER_TIMEOUT_SECONDS)
        except ValueError:
            timeout = PROVIDER_TIMEOUT_SECONDS

        origins = _env("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
        return cls(
            fal_key=_env("FAL_KEY"),
            replicate_token=_env("REPLICATE_API_TOKEN"),
            fal_video_url=_env("FAL_VIDEO_URL") or FAL_VIDEO_URL,
            replicate_predictions_url=_env("REPLICATE_PREDICTIONS_URL") or REPLICATE_PREDICTIONS_URL,
            replicate_model=_env("REPLICATE_MODEL") or REPLICATE_MODEL,
            timeout_seconds=timeout,
            cors_origins=[origin.strip() for origin in origins.split(",") if origin.strip()],
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.fal_key or self.replicate_token)
