"""FastAPI application."""

from fastapi import FastAPI

from backend.tenderwriter.api.routes.chat import router as chat_router
from backend.tenderwriter.api.routes.documents import router as documents_router
from backend.tenderwriter.api.routes.generate import router as generate_router
from backend.tenderwriter.api.routes.health import router as health_router
from backend.tenderwriter.api.routes.metrics import router as metrics_router
from backend.tenderwriter.api.routes.search import router as search_router
from backend.tenderwriter.config import get_settings
from backend.tenderwriter.utils.logging import configure_logging

configure_logging(get_settings().log_level)

app = FastAPI(title="Tender Writer API", version="0.1.0")

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(documents_router)
app.include_router(generate_router)
app.include_router(search_router)
app.include_router(chat_router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Tender Writer API", "version": "0.1.0"}
