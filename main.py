import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from config import ProviderSettings
from providers import ProviderRouter
from routers import generation

# --------------------------------------------------------------------------
# --- Configuration & Setup ---
# --------------------------------------------------------------------------

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(settings: Optional[ProviderSettings] = None) -> FastAPI:
    settings = settings or ProviderSettings.from_env()

    app = FastAPI(
        title="Video Studio Generator",
        description="Turns prompts, stills and reference clips into videos via external providers.",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.provider_router = ProviderRouter(settings)

    # --- Error Handlers ---

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException):
        if exc.status_code >= 500:
            logging.error(f"❌ {request.url.path} failed: {exc.detail}")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request.") if errors else "Invalid request."
        return _error(400, message)

    # --- API Endpoints ---

    @app.get("/")
    def read_root():
        return {
            "status": "🚀 Video Studio Generator is running!",
            "providers": app.state.provider_router.configured_names(),
        }

    app.include_router(generation.router)

    providers = app.state.provider_router.configured_names()
    if providers:
        logging.info(f"🔌 Video providers configured: {', '.join(providers)}")
    else:
        logging.info("🔌 No video provider credentials found, serving mock catalog")
    return app


app = create_app()
