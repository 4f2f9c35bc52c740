"""
External video-generation providers.

Each provider makes exactly one POST per request and never raises: any
transport error, bad status or unexpected payload is logged and reported as
``None`` so the router can move on to the next provider or the mock catalog.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from config import ProviderSettings
from schemas import GenerationRequest, GenerationResult
from services import build_metadata


class ProviderResponseError(Exception):
    """Raised internally when a provider answers without a usable video URL."""


class VideoProvider:
    """Base class for a single external generation service."""

    name = "provider"

    def __init__(self, settings: ProviderSettings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()

    def is_configured(self) -> bool:
        raise NotImplementedError

    def _request(self, request: GenerationRequest) -> Dict[str, Any]:
        raise NotImplementedError

    def _parse(self, data: Any, request: GenerationRequest, job_id: str) -> GenerationResult:
        raise NotImplementedError

    def _post(self, url: str, headers: Dict[str, str], body: Dict[str, Any]) -> Any:
        response = self.session.post(
            url,
            json=body,
            headers={"Content-Type": "application/json", **headers},
            timeout=self.settings.timeout_seconds,
        )
        if not response.ok:
            raise ProviderResponseError(
                f"{self.name} request failed: {response.status_code} {response.text[:500]}"
            )
        return response.json()

    def generate(self, request: GenerationRequest, job_id: str) -> Optional[GenerationResult]:
        try:
            logging.info(f"🎬 [{job_id}] Requesting video from {self.name}")
            data = self._request(request)
            result = self._parse(data, request, job_id)
            logging.info(f"✅ [{job_id}] {self.name} returned {result.video_url}")
            return result
        except requests.RequestException as e:
            logging.error(f"❌ [{job_id}] Could not reach {self.name}: {e}")
        except ValueError as e:
            # covers requests' JSONDecodeError and pydantic's ValidationError
            logging.error(f"❌ [{job_id}] {self.name} returned an unusable payload: {e}")
        except ProviderResponseError as e:
            logging.error(f"❌ [{job_id}] {e}")
        return None

    def _completed(
        self,
        request: GenerationRequest,
        job_id: str,
        video_url: str,
        poster_url: Optional[str],
    ) -> GenerationResult:
        return GenerationResult(
            job_id=job_id,
            video_url=video_url,
            poster_url=poster_url,
            mode=request.mode,
            prompt=request.prompt,
            status="completed",
            metadata=build_metadata(request),
        )


def _drop_missing(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


class FalProvider(VideoProvider):
    name = "fal"

    def is_configured(self) -> bool:
        return bool(self.settings.fal_key)

    def _request(self, request: GenerationRequest) -> Dict[str, Any]:
        body = _drop_missing({
            "prompt": request.prompt,
            "negative_prompt": request.negative_prompt,
            "duration": request.duration,
            "guidance_scale": request.guidance,
            "aspect_ratio": request.aspect_ratio,
            "image_url": request.image.data_uri if request.image else None,
            "video_url": request.reference.data_uri if request.reference else None,
        })
        headers = {"Authorization": f"Key {self.settings.fal_key}"}
        return self._post(self.settings.fal_video_url, headers, body)

    def _parse(self, data: Any, request: GenerationRequest, job_id: str) -> GenerationResult:
        video = data.get("video") if isinstance(data, dict) else None
        video_url = video.get("url") if isinstance(video, dict) else None
        if not isinstance(video_url, str) or not video_url:
            raise ProviderResponseError("fal response did not include a video URL.")

        preview = data.get("preview")
        poster_url = preview if isinstance(preview, str) and preview else None
        return self._completed(request, job_id, video_url, poster_url)


class ReplicateProvider(VideoProvider):
    name = "replicate"

    def is_configured(self) -> bool:
        return bool(self.settings.replicate_token)

    def _request(self, request: GenerationRequest) -> Dict[str, Any]:
        body = {
            "version": self.settings.replicate_model,
            "input": _drop_missing({
                "prompt": request.prompt,
                "negative_prompt": request.negative_prompt,
                "duration": request.duration,
                "guidance": request.guidance,
                "aspect_ratio": request.aspect_ratio,
                "image": request.image.data_uri if request.image else None,
                "reference": request.reference.data_uri if request.reference else None,
            }),
            "wait": True,
        }
        headers = {"Authorization": f"Bearer {self.settings.replicate_token}"}
        return self._post(self.settings.replicate_predictions_url, headers, body)

    def _parse(self, data: Any, request: GenerationRequest, job_id: str) -> GenerationResult:
        output = data.get("output") if isinstance(data, dict) else None

        poster_url = None
        if isinstance(output, dict):
            video_url = output.get("video")
            poster = output.get("poster")
            if isinstance(poster, str) and poster:
                poster_url = poster
        elif isinstance(output, list) and output:
            video_url = output[0]
        else:
            video_url = None

        if not isinstance(video_url, str) or not video_url:
            raise ProviderResponseError("replicate response did not include a video URL.")

        if poster_url is None and request.image is not None:
            poster_url = request.image.data_uri
        return self._completed(request, job_id, video_url, poster_url)


class ProviderRouter:
    """Tries the configured providers in priority order, one attempt each."""

    def __init__(self, settings: ProviderSettings, providers: Optional[List[VideoProvider]] = None):
        self.settings = settings
        if providers is None:
            session = requests.Session()
            providers = [
                FalProvider(settings, session),
                ReplicateProvider(settings, session),
            ]
        self.providers = providers

    @property
    def enabled(self) -> bool:
        return self.settings.has_credentials

    def configured_names(self) -> List[str]:
        return [provider.name for provider in self.providers if provider.is_configured()]

    def generate(self, request: GenerationRequest, job_id: str) -> Optional[GenerationResult]:
        for provider in self.providers:
            if not provider.is_configured():
                continue
            try:
                result = provider.generate(request, job_id)
            except Exception:
                logging.exception(f"❌ [{job_id}] {provider.name} failed unexpectedly")
                continue
            if result is not None:
                return result
            logging.warning(f"⚠️ [{job_id}] {provider.name} produced no result, trying next option")
        return None
