"""
RothPlanner - FastAPI Backend
=============================
HTTP host for the Roth conversion engine.

Responsibilities kept out of the engine live here:
1. Request parsing (pydantic, via FastAPI)
2. Result caching by request fingerprint (24h TTL by default)
3. Mapping validation failures and unexpected errors to HTTP responses
"""

import os
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Local imports
from roth_constants import (
    FilingStatus,
    RMD_START_AGE,
    SUPPORTED_TAX_YEARS,
    UNIFORM_LIFETIME_TABLE,
    get_tax_bracket_info,
)
from roth_models import AnalysisResult, ConversionRequest
from roth_analyzer import RothConversionAnalyzer
from analysis_cache import DEFAULT_TTL_SECONDS, AnalysisCache, InMemoryAnalysisCache, request_fingerprint
from tax_engine import get_filing_status_config, has_filing_status_config

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION SETUP
# =============================================================================

CACHE_TTL_SECONDS = float(os.getenv("ROTHPLANNER_CACHE_TTL_SECONDS", DEFAULT_TTL_SECONDS))
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ROTHPLANNER_CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if origin.strip()
]

analyzer = RothConversionAnalyzer()
result_cache: AnalysisCache[AnalysisResult] = InMemoryAnalysisCache(ttl_seconds=CACHE_TTL_SECONDS)


def get_cache() -> AnalysisCache[AnalysisResult]:
    return result_cache


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"RothPlanner starting up (tax years {SUPPORTED_TAX_YEARS}, cache TTL {CACHE_TTL_SECONDS:.0f}s)")
    yield
    result_cache.clear()
    logger.info("RothPlanner shutting down...")


app = FastAPI(
    title="RothPlanner",
    description="Roth conversion tax-optimization and retirement-projection API",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# API ENDPOINTS
# =============================================================================

@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "rothplanner"}


# --- ANALYSIS ---

@app.post("/api/analyze")
def analyze_conversion(
    request: ConversionRequest,
    cache: AnalysisCache[AnalysisResult] = Depends(get_cache),
):
    """
    Run a Roth conversion analysis.

    Returns 422 with the full list of field failures when the request is
    out of bounds; otherwise the analysis and the year-by-year plan.
    """
    key = request_fingerprint(request)
    cache.sweep()

    result = cache.get(key)
    if result is None:
        result = analyzer.analyze(request)
        if result.is_valid:
            cache.set(key, result)
        cached = False
    else:
        logger.info(f"[{key[:12]}] Served analysis from cache")
        cached = True

    if not result.is_valid:
        raise HTTPException(
            status_code=422,
            detail=[error.model_dump(mode="json") for error in result.errors]
        )

    return {
        "request_id": key,
        "cached": cached,
        **result.model_dump(mode="json"),
    }


# --- TAX REFERENCE DATA ---

@app.get("/api/reference/brackets")
async def get_tax_brackets(tax_year: int = SUPPORTED_TAX_YEARS[-1], filing_status: Optional[str] = None):
    """Get bracket tables for a tax year (one filing status, or all)."""
    if tax_year not in SUPPORTED_TAX_YEARS:
        raise HTTPException(status_code=404, detail=f"No tax table for {tax_year}")

    if filing_status:
        try:
            statuses = [FilingStatus(filing_status)]
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid filing status")
    else:
        statuses = [s for s in FilingStatus if has_filing_status_config(tax_year, s)]

    return {
        status.value: {
            **get_filing_status_config(tax_year, status).model_dump(mode="json"),
            "description": get_tax_bracket_info(tax_year, status),
        }
        for status in statuses
    }


@app.get("/api/reference/rmd-divisors")
async def get_rmd_divisors():
    """Get the Uniform Lifetime Table used for RMDs."""
    return {
        "start_age": RMD_START_AGE,
        "divisors": {str(age): str(divisor) for age, divisor in UNIFORM_LIFETIME_TABLE.items()},
    }


# --- ERROR HANDLERS ---

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc) if os.getenv("DEBUG") else "An error occurred"
        }
    )


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
