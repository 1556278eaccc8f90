"""
FastAPI wrapper for Anchor Humanizer - Vercel Serverless Function.

This module exposes anchor-protected humanization as a REST API
for deployment on Vercel.
"""

import logging
import os
from typing import Callable, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from anchor_humanizer import __version__
from anchor_humanizer.config import HUMANIZE_MODEL_NAMES, HumanizeConfig
from anchor_humanizer.humanize_client import (
    AIHumanizeClient,
    HumanizeServiceError,
    HumanizeTransformError,
)
from anchor_humanizer.pipeline import HumanizationPipeline

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Anchor Humanizer API",
    description="Humanizes article HTML while keeping anchor links and brand phrases intact",
    version=__version__,
)

# Enable CORS for all origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class HumanizeRequest(BaseModel):
    """Request model for humanizing article HTML."""
    html: str = Field(..., description="Article HTML to humanize")
    model: int = Field(1, description="AIHumanize model: 0 quality, 1 balance, 2 enhanced")
    registered_email: Optional[str] = Field(None, description="Registered AIHumanize email")
    frozen_phrases: list[str] = Field(default_factory=list, description="Phrases to protect from rewriting")
    style: Optional[str] = Field(None, description="Style hint (General, Blog, Formal, ...), logged only")


class HumanizeResponse(BaseModel):
    """Response model for humanization results."""
    ok: bool
    html: str
    status: str
    words_used: int = 0
    remaining_words: int = 0
    error: Optional[str] = None
    user_message: Optional[str] = None


class BalanceResponse(BaseModel):
    """Word balance response."""
    balance: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str


ClientFactory = Callable[[HumanizeConfig], AIHumanizeClient]


def get_client_factory() -> ClientFactory:
    """Build the rewrite client for a request (overridden in tests).

    Clients are closed when the request is done.
    """
    return AIHumanizeClient


def _require_api_key() -> str:
    api_key = os.environ.get("AIHUMANIZE_API_KEY")
    if not api_key:
        raise HTTPException(
            status_code=500,
            detail="AIHUMANIZE_API_KEY environment variable not set"
        )
    return api_key


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors."""
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=__version__
    )


@app.post("/api/humanize", response_model=HumanizeResponse)
def humanize(request: HumanizeRequest, client_factory: ClientFactory = Depends(get_client_factory)):
    """
    Humanize article HTML.

    Anchors and frozen phrases are protected during the rewrite. A failed
    rewrite still answers ok with the original HTML and status "failed".
    """
    if not request.html or not request.html.strip():
        raise HTTPException(status_code=400, detail="HTML content is required")
    if request.model not in HUMANIZE_MODEL_NAMES:
        raise HTTPException(status_code=400, detail="Invalid model parameter. Must be 0, 1, or 2")

    email = request.registered_email or os.environ.get("AIHUMANIZE_EMAIL")
    if not email:
        raise HTTPException(status_code=400, detail="Registered email is required")

    api_key = _require_api_key()

    logger.info(
        f"Humanize request: {len(request.html)} chars, model {request.model}, "
        f"{len(request.frozen_phrases)} frozen phrases, style {request.style or 'default'}"
    )

    config = HumanizeConfig(model=request.model, registered_email=email, api_key=api_key)
    try:
        client = client_factory(config)
    except HumanizeTransformError as e:
        raise HTTPException(status_code=500, detail=str(e))

    with client:
        result = HumanizationPipeline(client, config).run(request.html, request.frozen_phrases)

    return HumanizeResponse(
        ok=True,
        html=result.html,
        status=result.status.value,
        words_used=result.words_used,
        remaining_words=result.remaining_words,
        error=result.error,
        user_message=result.user_message,
    )


@app.get("/api/humanize/balance", response_model=BalanceResponse)
def humanize_balance(
    email: Optional[str] = None,
    client_factory: ClientFactory = Depends(get_client_factory),
):
    """Get the remaining AIHumanize word balance for an email."""
    if not email:
        raise HTTPException(status_code=400, detail="Email parameter is required")

    api_key = _require_api_key()

    try:
        with client_factory(HumanizeConfig(registered_email=email, api_key=api_key)) as client:
            return BalanceResponse(balance=client.get_balance())
    except HumanizeServiceError as e:
        raise HTTPException(
            status_code=402 if e.is_balance_empty else 500,
            detail=e.user_message,
        )
    except HumanizeTransformError as e:
        raise HTTPException(status_code=500, detail=f"Failed to check balance: {e}")


@app.get("/api/info")
async def api_info():
    """Get API information and usage instructions."""
    return {
        "name": "Anchor Humanizer API",
        "version": __version__,
        "description": "Anchor-protected article humanization",
        "endpoints": {
            "GET /api/health": "Health check",
            "POST /api/humanize": "Humanize article HTML, protecting anchors and frozen phrases",
            "GET /api/humanize/balance": "Remaining AIHumanize word balance for an email",
            "GET /api/info": "This endpoint",
        },
        "documentation": "/docs",
        "openapi": "/openapi.json",
    }
