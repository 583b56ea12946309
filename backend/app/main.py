"""FastAPI application."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.app.api.routes.activity import router as activity_router
from backend.app.api.routes.health import router as health_router
from backend.app.api.routes.metrics import router as metrics_router
from backend.app.api.routes.surveys import router as surveys_router
from backend.app.config import get_settings

app = FastAPI(title="MoSurveys API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[get_settings().ui_origin],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(surveys_router, tags=["surveys"])
app.include_router(activity_router, tags=["activity"])


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "MoSurveys API", "version": "0.1.0"}
