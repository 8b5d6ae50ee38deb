"""Health check routes for the FastAPI application."""

from fastapi import APIRouter

from ... import __version__
from ...config.environment import ENVIRONMENT_NAME

router = APIRouter(tags=["health"])


@router.get("/")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "environment": ENVIRONMENT_NAME,
        "version": __version__
    }
