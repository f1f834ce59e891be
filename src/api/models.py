"""
Pydantic models for API request/response validation.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ResultSetInfo(BaseModel):
    """One materialized result set."""
    name: str
    row_count: int = Field(..., ge=0)


class ResultSetListResponse(BaseModel):
    results_db_path: str
    result_sets: List[ResultSetInfo]


class ResultRowsResponse(BaseModel):
    """Rows of one result set."""
    name: str
    row_count: int = Field(..., ge=0, description="Rows returned (after limit)")
    rows: List[Dict[str, Any]]

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "FlaggedPairs",
                "row_count": 1,
                "rows": [{
                    "buyer_id": "B-1001",
                    "seller_id": "S-77",
                    "total_transaction_count": 42,
                    "total_transaction_amount": 1250000.0,
                    "is_potential_collusion": 1
                }]
            }
        }
    }


class RunReportResponse(BaseModel):
    """Outcome of one scoring run."""
    run_id: str
    snapshot_rows: int
    started_at: datetime
    finished_at: Optional[datetime] = None
    row_counts: Dict[str, int]
    errors: Dict[str, str] = Field(default_factory=dict, description="result set -> failure")


class HealthCheckResponse(BaseModel):
    """System health status."""
    status: str = Field(..., description="healthy | degraded | down")
    source_db_ok: bool
    results_db_ok: bool
    uptime_seconds: float
    last_run_id: Optional[str] = None


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    message: str
    timestamp: datetime = Field(default_factory=datetime.now)
