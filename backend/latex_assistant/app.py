import logging
import os
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from .config import load_settings
from .logging_config import setup_logging
from .routes.ai import router as ai_router
from .routes.health import router as health_router
from .routes.session import router as session_router
from .routes.templates import router as templates_router
from .services.templates import load_registry

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    # Load environment variables from .env if present
    if os.getenv("DOTENV_DISABLED", "false").lower() not in {"1", "true", "yes"}:
        load_dotenv()

    settings = load_settings()
    setup_logging(settings.log_level)

    app = FastAPI(title="LaTeX Assistant API", version="0.3.0")
    # Catalogue is read once per process and never mutated afterwards.
    app.state.registry = load_registry(settings.templates_path)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(health_router, prefix="/api")
    app.include_router(ai_router, prefix="/api")
    app.include_router(templates_router, prefix="/api")
    app.include_router(session_router, prefix="/api")

    logger.info("API ready with model %s", settings.openai_model)
    return app
