"""FastAPI application entry point."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from autotag.config import get_settings
from autotag.dependencies import logger
from autotag.tags.router import router as tags_router

settings = get_settings()

app = FastAPI(title="Obsidian AutoTag", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(tags_router)


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": "0.1.0",
        "vault_path": str(settings.vault_path),
        "provider": settings.active_provider,
    }


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {"name": "Obsidian AutoTag", "version": "0.1.0", "docs": "/docs"}


logger.info(
    "app_startup",
    extra={"host": settings.host, "port": settings.port, "provider": settings.active_provider},
)
