"""
Router for the video generation endpoint.
Normalizes the studio form, encodes uploads and picks a provider or the mock catalog.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from starlette.datastructures import FormData, UploadFile

from config import IMAGE_MAX_BYTES, REFERENCE_MAX_BYTES
from providers import ProviderRouter
from schemas import ErrorResponse, GenerationMode, GenerationResult
from services import AssetEncoder, MockCatalog, RequestNormalizer

router = APIRouter(tags=["generation"])


def get_provider_router(request: Request) -> ProviderRouter:
    """Dependency returning the router built from the app's settings."""
    return request.app.state.provider_router


def _uploaded_file(form: FormData, field: str) -> Optional[UploadFile]:
    # plain text sent in a file field counts as no upload
    value = form.get(field)
    return value if isinstance(value, UploadFile) else None


@router.post(
    "/api/generate",
    response_model=GenerationResult,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def generate_video(
    request: Request,
    mode: Optional[str] = Form(None),
    prompt: Optional[str] = Form(None),
    negative_prompt: Optional[str] = Form(None, alias="negativePrompt"),
    duration: Optional[str] = Form(None),
    guidance: Optional[str] = Form(None),
    aspect_ratio: Optional[str] = Form(None, alias="aspectRatio"),
    provider_router: ProviderRouter = Depends(get_provider_router),
):
    """
    Generates a video for a text prompt, a still image or a reference clip.
    Falls back to the mock catalog when no provider is configured or all of them fail.

    Uploads arrive as the ``image`` and ``referenceVideo`` form fields; only the one
    matching ``mode`` is read.
    """
    try:
        normalizer = RequestNormalizer(
            mode=mode,
            prompt=prompt,
            negative_prompt=negative_prompt,
            duration=duration,
            guidance=guidance,
            aspect_ratio=aspect_ratio,
        ).run()

        form = await request.form()
        image_asset = None
        reference_asset = None
        if normalizer.mode is GenerationMode.IMAGE:
            image = _uploaded_file(form, "image")
            if image is None:
                raise HTTPException(status_code=400, detail="Image-to-video generations require an image upload.")
            image_asset = await AssetEncoder(IMAGE_MAX_BYTES).encode(image)

        if normalizer.mode is GenerationMode.REFERENCE:
            reference_video = _uploaded_file(form, "referenceVideo")
            if reference_video is None:
                raise HTTPException(
                    status_code=400,
                    detail="Reference-to-video generations require a reference video upload.",
                )
            reference_asset = await AssetEncoder(REFERENCE_MAX_BYTES).encode(reference_video)

        generation = normalizer.build(image=image_asset, reference=reference_asset)
        job_id = f"job_{uuid.uuid4()}"
        logging.info(f"✨ Job {job_id} received ({generation.mode.value}): '{generation.prompt}'")

        if provider_router.enabled:
            result = await run_in_threadpool(provider_router.generate, generation, job_id)
            if result is not None:
                return result
            logging.warning(f"⚠️ Job {job_id}: no provider produced a video, using mock catalog")

        return MockCatalog.result_for(generation, job_id)
    except HTTPException:
        raise
    except Exception as e:
        logging.exception("[generate] Unexpected error")
        raise HTTPException(status_code=500, detail=str(e) or "Unexpected error occurred during generation.")
