"""
Result-set service for FastAPI integration.

Wraps the scoring runner and the materializer:
- run a scoring pass over the source DuckDB and persist every result set
- list / read materialized result sets
- health checks
"""
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from src.detection.models import DetectorConfig
from src.engine.runner import ScoringReport, run_scoring
from src.ingestion.batch_loader import load_snapshot
from src.views.materializer import list_result_sets, read_result_set, save_result_sets


logger = logging.getLogger(__name__)


class ResultStoreService:
    """
    Usage:
        service = ResultStoreService(
            source_db_path="data/processed/cleaned_merged_data.duckdb",
            results_db_path="data/processed/fraud_results.duckdb"
        )
        report = service.run()
        rows = service.read("FlaggedPairs", limit=50)
    """

    def __init__(
        self,
        source_db_path: str,
        results_db_path: str,
        source_table: str = "cleaned_merged_data",
        config: Optional[DetectorConfig] = None,
        max_workers: int = 4
    ):
        self.source_db_path = source_db_path
        self.results_db_path = results_db_path
        self.source_table = source_table
        self.config = config or DetectorConfig()
        self.max_workers = max_workers
        self.last_report: Optional[ScoringReport] = None

    def run(self) -> ScoringReport:
        snapshot = load_snapshot(self.source_db_path, self.source_table)
        report = run_scoring(snapshot, self.config, max_workers=self.max_workers)
        save_result_sets(report.results, self.results_db_path, failed=report.errors)
        self.last_report = report
        return report

    def list(self) -> Dict[str, int]:
        if not Path(self.results_db_path).exists():
            return {}
        return list_result_sets(self.results_db_path)

    def read(self, name: str, limit: Optional[int] = None) -> List[Dict]:
        if not Path(self.results_db_path).exists():
            raise KeyError(f"No result sets materialized yet at {self.results_db_path}")
        df = read_result_set(self.results_db_path, name, limit)
        return self._to_records(df)

    @staticmethod
    def _to_records(df: pd.DataFrame) -> List[Dict]:
        # Round-trip through JSON: NaN -> null, timestamps -> ISO strings
        return json.loads(df.to_json(orient="records", date_format="iso"))

    def health_check(self) -> Dict:
        source_ok = Path(self.source_db_path).exists()
        results_ok = Path(self.results_db_path).exists()
        if source_ok and results_ok:
            status = "healthy"
        elif source_ok:
            status = "degraded"  # can score, nothing materialized yet
        else:
            status = "down"
        return {
            "status": status,
            "source_db_ok": source_ok,
            "results_db_ok": results_ok,
            "last_run_id": self.last_report.run_id if self.last_report else None,
        }
