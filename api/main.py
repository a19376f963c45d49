"""
LieAnalyzer API — Main Application

POST /analyze       — Upload a document (txt, json, csv, html, pdf) and profile it
POST /analyze/text  — Profile raw transcript text
GET  /keywords      — Keyword inventory of the heuristic engine
GET  /health        — Health check
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.requests import Request

from lieanalyzer import __version__
from lieanalyzer.auth import AUTH_ENABLED, require_api_key
from lieanalyzer.cache import analysis_cache
from lieanalyzer.config import settings
from lieanalyzer.detector import analyze_local, analyze_remote
from lieanalyzer.extractor import (
    SUPPORTED_TYPES,
    ExtractionError,
    extract_document,
    normalize_text,
)
from lieanalyzer.heuristic import ENGINE_VERSION, heuristic_engine
from lieanalyzer.llm.factory import get_provider
from lieanalyzer.locales import DEFAULT_LOCALE, SUPPORTED_LOCALES
from lieanalyzer.logging import get_logger, setup_logging
from lieanalyzer.schemas.analysis import (
    AnalyzeResponse,
    AnalyzeTextRequest,
    HealthResponse,
    KeywordsResponse,
)

logger = get_logger("api")

ANALYSIS_MODES = ("local", "remote")


# ============================================================
# STARTUP / SHUTDOWN
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(
        "LieAnalyzer API starting",
        extra={"mode": settings.DEFAULT_MODE, "source": settings.LLM_PROVIDER},
    )
    if not AUTH_ENABLED:
        logger.info("API key auth disabled (LIEANALYZER_API_KEYS not set)")
    # Unknown provider names fail here, at startup
    _get_llm()
    yield
    logger.info("LieAnalyzer API shutting down")


app = FastAPI(
    title="LieAnalyzer API",
    description="Deception risk profiling for transcripts and documents",
    version=f"{__version__} (engine {ENGINE_VERSION})",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",")],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["X-API-Key", "Content-Type", "Authorization"],
    allow_credentials=False,
)


@app.get("/", include_in_schema=False)
async def root():
    return JSONResponse({"message": "LieAnalyzer API", "docs": "/docs"})


# ============================================================
# GLOBAL ERROR HANDLER
# ============================================================

@app.exception_handler(Exception)
async def global_error_handler(request: Request, exc: Exception):
    """Log unhandled exceptions; return a structured body without internals."""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}",
        extra={"error": str(exc), "path": request.url.path, "method": request.method},
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error. The analysis could not be completed."},
    )


# Lazy LLM provider
_llm = None


def _get_llm():
    global _llm
    if _llm is None:
        _llm = get_provider(settings.LLM_PROVIDER)
    return _llm


def _check_mode(mode: str) -> str:
    if mode not in ANALYSIS_MODES:
        raise HTTPException(422, f"Invalid mode: {mode}. Use 'local' or 'remote'.")
    return mode


async def _run_analysis(
    text: str,
    locale: str,
    mode: str,
    file_name: str,
    key_id: Optional[str],
) -> dict:
    start = time.time()

    if mode == "local":
        result = await analyze_local(text, locale=locale)
    else:
        result = await analysis_cache.get(text, locale, mode)
        if result is None:
            result = await analyze_remote(
                text, llm=_get_llm(), locale=locale, file_name=file_name,
            )
            # Fallbacks are not cached so the next request retries the model
            if result["source"] == "model":
                await analysis_cache.put(text, locale, mode, result)

    duration = int((time.time() - start) * 1000)
    logger.info(
        f"Analysis complete: score={result['analysis']['lieProbability']} source={result['source']}",
        extra={
            "lie_probability": result["analysis"]["lieProbability"],
            "confidence_score": result["analysis"]["confidenceScore"],
            "locale": result["locale"],
            "mode": mode,
            "source": result["source"],
            "chars": len(text),
            "duration_ms": duration,
            "key_id": key_id,
        },
    )
    return result


# ============================================================
# ROUTES
# ============================================================

@app.post("/analyze", response_model=AnalyzeResponse)
async def analyze_upload(
    file: UploadFile = File(...),
    locale: str = Form(DEFAULT_LOCALE),
    mode: str = Form(settings.DEFAULT_MODE),
    key_id: Optional[str] = Depends(require_api_key),
):
    """Extract text from an uploaded document and profile it."""
    _check_mode(mode)
    file_name = file.filename or "upload"
    data = await file.read()

    try:
        document = extract_document(data, file_name, declared_type=file.content_type)
    except ExtractionError as e:
        logger.info(
            "Extraction rejected upload",
            extra={"file_name": file_name, "media_type": file.content_type,
                   "error": str(e), "error_type": type(e).__name__},
        )
        raise HTTPException(400, str(e))

    result = await _run_analysis(document.text, locale, mode, file_name, key_id)
    return {
        **result,
        "file_name": document.file_name,
        "media_type": document.media_type,
        "truncated": document.truncated,
    }


@app.post("/analyze/text", response_model=AnalyzeResponse)
async def analyze_text(
    request: AnalyzeTextRequest,
    key_id: Optional[str] = Depends(require_api_key),
):
    """Profile raw transcript text."""
    text, truncated = normalize_text(request.text)
    if not text:
        raise HTTPException(400, "Text is empty after removing control characters.")

    result = await _run_analysis(text, request.locale, request.mode, "transcript.txt", key_id)
    return {**result, "truncated": truncated}


@app.get("/keywords", response_model=KeywordsResponse)
async def get_keywords(
    key_id: Optional[str] = Depends(require_api_key),
):
    """Keyword tables the heuristic engine matches against."""
    return {"engine_version": ENGINE_VERSION, **heuristic_engine.get_keywords()}


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check — no auth required."""
    return {
        "status": "operational",
        "version": __version__,
        "engine_version": ENGINE_VERSION,
        "llm_provider": settings.LLM_PROVIDER,
        "locales": list(SUPPORTED_LOCALES),
        "supported_types": list(SUPPORTED_TYPES),
        "cache": analysis_cache.stats,
    }


# --- Security + Version Headers Middleware ---
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-LieAnalyzer-Version"] = __version__
    response.headers["X-Engine-Version"] = ENGINE_VERSION
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


# --- Body Size Limit Middleware ---
@app.middleware("http")
async def enforce_body_size_limit(request: Request, call_next):
    """Reject bodies above MAX_UPLOAD_BYTES, by header and by actual size."""
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit():
        if int(content_length) > settings.MAX_UPLOAD_BYTES:
            return JSONResponse(status_code=413, content={"detail": "Request body too large."})

    if request.method in ("POST", "PUT", "PATCH"):
        body = await request.body()
        if len(body) > settings.MAX_UPLOAD_BYTES:
            return JSONResponse(status_code=413, content={"detail": "Request body too large."})

    return await call_next(request)


# --- Request Logging Middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    path = request.url.path
    if path == "/health":
        return await call_next(request)

    start = time.time()
    response = await call_next(request)
    duration_ms = round((time.time() - start) * 1000, 1)

    logger.info(
        f"{request.method} {path} → {response.status_code} ({duration_ms}ms)",
        extra={
            "method": request.method,
            "path": path,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        },
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host=settings.HOST, port=settings.PORT)
