import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from src.adapters.auth.crypto import AesGcmAnswerEncryptor
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.api.deps import get_settings
from src.config import load_config

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Fail fast on a broken config or schema
    config = load_config(settings.config_path)
    logger.info(
        "Config loaded from %s (allow_reg=%s, validation=%s)",
        settings.config_path,
        config.registration.allow_reg,
        config.registration.validation_mode,
    )

    if config.security_questions.asked_at_registration:
        # Raises EncryptionError when REG_ANSWER_KEY is missing or invalid
        AesGcmAnswerEncryptor.from_env()

    os.makedirs(os.path.dirname(settings.db_path) or ".", exist_ok=True)
    SQLiteMigrator(settings.db_path, settings.migrations_dir).run_migrations()

    yield


app = FastAPI(
    title="Member Registration API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from src.api.routes import registration  # noqa: E402

app.include_router(registration.router, prefix="/api/register", tags=["Registration"])


@app.get("/health")
def health_check() -> dict[str, Any]:
    return {"status": "ok"}
