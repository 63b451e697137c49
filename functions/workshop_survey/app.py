"""
FastAPI application entry point for the survey service.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from workshop_survey.config import get_settings
from workshop_survey.routes import router


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    app = FastAPI(title="Workshop Survey Backend (FastAPI)", version="0.1.0")
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
