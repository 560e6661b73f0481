"""Asset library HTTP app."""
from __future__ import annotations

from fastapi import FastAPI

from assetlib.common.error_envelope import register_error_handlers
from assetlib.download.routes import router as download_router


def create_app() -> FastAPI:
    app = FastAPI(title="Asset Library", version="0.1.0")
    register_error_handlers(app)
    app.include_router(download_router)

    @app.get("/health")
    async def health_check():
        return {"service": "assetlib", "status": "ok"}

    return app
