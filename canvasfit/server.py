from __future__ import annotations

import logging

from fastapi import APIRouter, FastAPI
from starlette.middleware.cors import CORSMiddleware

from .app import config
from .app.routes import images

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def create_app(settings: config.Settings | None = None) -> FastAPI:
    """Build the FastAPI application serving the ``/api`` routes."""

    application = FastAPI(title="canvasfit")
    if settings is None:
        settings = config.get_settings()
    else:
        # Routes resolve their settings through this dependency.
        application.dependency_overrides[config.get_settings] = lambda: settings

    allow_origins, allow_origin_regex = config._prepare_cors_settings(list(settings.cors_origins))
    application.add_middleware(
        CORSMiddleware,
        allow_credentials=True,
        allow_origins=allow_origins,
        allow_origin_regex=allow_origin_regex,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # Create a router with the /api prefix
    api_router = APIRouter(prefix="/api")
    api_router.include_router(images.router)
    application.include_router(api_router)

    logger.info(
        "canvasfit ready (resample=%s, max scale=%g)",
        settings.resample_filter,
        settings.max_scale,
    )
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("canvasfit.server:app", host="0.0.0.0", port=8000)
