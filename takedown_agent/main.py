from __future__ import annotations

import logging
from functools import lru_cache
from typing import AsyncIterator, Union

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .aggregator import Aggregator
from .config import Settings, configure_logging, load_env
from .errors import InternalFault, InvalidInput, TakedownError
from .llm import CompletionModel, GeminiClient
from .models import (
    AnalysisResult,
    AnalyzeRequest,
    GenerateTakedownRequest,
    IntelligentAnalysis,
    IntelligentAnalysisRequest,
    ModelTakedownResponse,
    TakedownTextResponse,
)
from .normalize import normalize
from .takedown import generate_model_takedown, render_takedown_request
from .targets import recommend_targets


load_env()

logger = logging.getLogger(__name__)


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()


_settings = get_settings()
configure_logging(_settings.log_level)

app = FastAPI(title="Takedown Agent", version="0.1.0")

# For local dev, this defaults to allowing http://localhost:3000.
# In production, set TAKEDOWN_CORS_ORIGINS to your deployed frontend origins.
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def get_http_client(settings: Settings = Depends(get_settings)) -> AsyncIterator[httpx.AsyncClient]:
    # One client per request; nothing is shared between analyses.
    async with httpx.AsyncClient(
        timeout=settings.upstream_timeout_s,
        follow_redirects=True,
        headers={"user-agent": settings.user_agent},
    ) as client:
        yield client


def get_model_client(settings: Settings = Depends(get_settings)) -> CompletionModel | None:
    if not settings.gemini_api_key:
        return None
    return GeminiClient(settings.gemini_api_key, settings.gemini_model, timeout=max(settings.upstream_timeout_s, 20.0))


def get_aggregator(
    settings: Settings = Depends(get_settings),
    http: httpx.AsyncClient = Depends(get_http_client),
    model: CompletionModel | None = Depends(get_model_client),
) -> Aggregator:
    return Aggregator.from_settings(settings, http, model)


@app.exception_handler(TakedownError)
async def takedown_error_handler(request: Request, exc: TakedownError) -> JSONResponse:
    return JSONResponse({"error": exc.message, "kind": exc.kind}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body') or 'body'}: {err.get('msg')}"
        for err in exc.errors()
    )
    return JSONResponse(
        {"error": problems or "Invalid request body", "kind": InvalidInput.kind},
        status_code=InvalidInput.status_code,
    )


@app.get("/healthz")
def healthz():
    return {"ok": True}


@app.post("/analyze", response_model=AnalysisResult, response_model_exclude_none=True)
async def analyze_endpoint(req: AnalyzeRequest, aggregator: Aggregator = Depends(get_aggregator)):
    hostname = normalize(req.url)
    try:
        return await aggregator.aggregate(hostname, url=req.url)
    except TakedownError:
        raise
    except Exception as e:
        logger.exception("Error analyzing %s", hostname)
        raise InternalFault("Failed to analyze domain") from e


@app.post("/generate-takedown", response_model=Union[TakedownTextResponse, ModelTakedownResponse])
async def generate_takedown_endpoint(
    req: GenerateTakedownRequest,
    model: CompletionModel | None = Depends(get_model_client),
):
    try:
        if req.mode == "model":
            return ModelTakedownResponse(text=await generate_model_takedown(req, model))
        return TakedownTextResponse(takedown_text=render_takedown_request(req))
    except TakedownError:
        raise
    except Exception as e:
        logger.exception("Error generating takedown text for %s", req.analysis.hostname)
        raise InternalFault("Failed to generate takedown text") from e


@app.post("/intelligent-analysis", response_model=IntelligentAnalysis, response_model_exclude_none=True)
async def intelligent_analysis_endpoint(
    req: IntelligentAnalysisRequest,
    model: CompletionModel | None = Depends(get_model_client),
):
    try:
        return await recommend_targets(req, model)
    except TakedownError:
        raise
    except Exception as e:
        logger.exception("Error in intelligent analysis for %s", req.domain)
        raise InternalFault("Internal server error") from e
