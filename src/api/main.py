"""
FastAPI REST API for Marketplace Fraud Scoring

Architecture:
- POST /runs: Score the current cleaned_merged_data snapshot, materialize results
- GET /results: List materialized result sets
- GET /results/{name}: Rows of one result set
- GET /health: System health check
"""
import logging
import time
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException, Query, status

from src.api.models import (
    HealthCheckResponse,
    ResultRowsResponse,
    ResultSetInfo,
    ResultSetListResponse,
    RunReportResponse,
)
from src.api.service import ResultStoreService
from src.config import settings
from src.detection.errors import FraudEngineError
from src.engine.runner import config_from_settings

# Setup logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Global service instance (initialized at startup)
scoring_service: ResultStoreService = None
startup_time: float = time.time()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire the result-store service at startup."""
    global scoring_service, startup_time

    logger.info("="*70)
    logger.info("🚀 STARTING MARKETPLACE FRAUD SCORING API")
    logger.info("="*70)

    scoring_service = ResultStoreService(
        source_db_path=settings.SOURCE_DB_PATH,
        results_db_path=settings.RESULTS_DB_PATH,
        source_table=settings.SOURCE_TABLE,
        config=config_from_settings(settings),
        max_workers=settings.MAX_WORKERS
    )
    startup_time = time.time()

    logger.info(f"   - Source: {settings.SOURCE_DB_PATH}:{settings.SOURCE_TABLE}")
    logger.info(f"   - Results: {settings.RESULTS_DB_PATH}")
    logger.info(f"   - k-sigma: {settings.SIGMA_K}")
    logger.info(f"🎯 API ready at http://{settings.API_HOST}:{settings.API_PORT}")

    yield

    logger.info("✅ Shutdown complete")


app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description="Batch fraud scoring over marketplace transactions (k-sigma detectors)",
    lifespan=lifespan
)


@app.post(
    "/runs",
    response_model=RunReportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Run Scoring"
)
def create_run() -> RunReportResponse:
    """
    Score the current snapshot and replace every materialized result set.

    Detector-level validation failures are reported in `errors`; the
    other result sets are still written.
    """
    try:
        report = scoring_service.run()
    except FraudEngineError as e:
        logger.error(f"❌ Scoring run rejected: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": type(e).__name__, "message": str(e)}
        )

    summary = report.summary()
    return RunReportResponse(
        run_id=summary["run_id"],
        snapshot_rows=summary["snapshot_rows"],
        started_at=report.started_at,
        finished_at=report.finished_at,
        row_counts=summary["row_counts"],
        errors=summary["errors"]
    )


@app.get("/results", response_model=ResultSetListResponse, summary="List Result Sets")
def list_results() -> ResultSetListResponse:
    available = scoring_service.list()
    return ResultSetListResponse(
        results_db_path=scoring_service.results_db_path,
        result_sets=[ResultSetInfo(name=n, row_count=c) for n, c in available.items()]
    )


@app.get("/results/{name}", response_model=ResultRowsResponse, summary="Read Result Set")
def get_result_set(
    name: str,
    limit: Optional[int] = Query(100, ge=1, le=100000)
) -> ResultRowsResponse:
    try:
        rows = scoring_service.read(name, limit)
    except KeyError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "NotFound", "message": str(e)}
        )
    return ResultRowsResponse(name=name, row_count=len(rows), rows=rows)


@app.get("/health", response_model=HealthCheckResponse, summary="Health Check")
async def health_check() -> HealthCheckResponse:
    health = scoring_service.health_check()
    health["uptime_seconds"] = time.time() - startup_time
    return HealthCheckResponse(**health)


@app.get("/", summary="Root Endpoint")
async def root() -> Dict:
    """Root endpoint with API info."""
    return {
        "service": settings.API_TITLE,
        "version": settings.API_VERSION,
        "status": "running",
        "endpoints": {
            "runs": "POST /runs - Score the snapshot and materialize result sets",
            "results": "GET /results - List result sets",
            "result": "GET /results/{name}?limit=100 - Rows of one result set",
            "health": "GET /health - Health check",
            "docs": "GET /docs - Interactive API documentation"
        }
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.api.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level=settings.LOG_LEVEL.lower()
    )
