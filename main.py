"""
Speed Funnel Service - Main Application

A FastAPI backend for a website-performance lead funnel: visitors submit a
URL, get a PageSpeed Insights analysis, unlock the detailed results with
their email, and are offered a CRM-backed lead form and paid optimization
packages via PayPal checkout.
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from config import Settings, get_settings
from routes import router

# Load environment variables
load_dotenv()


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around one settings instance."""
    settings = settings or get_settings()
    configure_logging(settings)

    # Initialize FastAPI app
    app = FastAPI(title="Speed Funnel Service")
    app.state.settings = settings

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include all routes from routes.py
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, timeout_keep_alive=60)
