"""
Batch entry point.

    python -m src.engine.run_scoring

1. Load cleaned_merged_data from DuckDB into a snapshot
2. (Optional) great_expectations gatekeeper
3. Run every detector
4. Materialize all result sets into the results DuckDB
"""

import logging
import sys

from src.config import settings
from src.engine.runner import ScoringReport, config_from_settings, run_scoring
from src.ingestion.batch_loader import load_snapshot
from src.views.materializer import save_result_sets


logger = logging.getLogger(__name__)


def main() -> ScoringReport:
    snapshot = load_snapshot(settings.SOURCE_DB_PATH, settings.SOURCE_TABLE)

    if settings.RUN_GX_VALIDATION:
        from src.validation.run_validation import validate_batch

        if not validate_batch(snapshot.frame, context_root_dir=settings.GX_CONTEXT_DIR):
            raise SystemExit("Source table failed validation; scoring aborted.")

    report = run_scoring(
        snapshot,
        config=config_from_settings(settings),
        max_workers=settings.MAX_WORKERS
    )
    save_result_sets(report.results, settings.RESULTS_DB_PATH, failed=report.errors)

    print(f"\n{'='*70}")
    print(f"SCORING RUN {report.run_id}")
    print(f"{'='*70}")
    for name, df in report.results.items():
        print(f"{name:<32} {len(df):>10,} rows")
    for name, error in report.errors.items():
        print(f"{name:<32} FAILED: {error}")
    print(f"{'='*70}\n")
    return report


if __name__ == "__main__":
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    report = main()
    sys.exit(0 if report.succeeded else 1)
