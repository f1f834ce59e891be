"""
Scoring run: every result set over one snapshot, in parallel.

Builders share nothing but the read-only snapshot, so they run as
independent tasks. A FraudEngineError aborts only the builder that
raised it; the run report keeps every other result set.
"""

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, Optional

import pandas as pd

from src.config import Settings
from src.detection.detectors import DetectorResult
from src.detection.errors import FraudEngineError
from src.detection.models import DetectorConfig, PopulationBaseline
from src.ingestion.snapshot import TransactionSnapshot
from src.views.result_sets import RESULT_SET_BUILDERS


logger = logging.getLogger(__name__)


@dataclass
class ScoringReport:
    """Outcome of one scoring run."""
    run_id: str
    snapshot_rows: int
    started_at: datetime
    finished_at: Optional[datetime] = None
    results: Dict[str, pd.DataFrame] = field(default_factory=dict)
    baselines: Dict[str, PopulationBaseline] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return not self.errors

    def summary(self) -> Dict:
        return {
            "run_id": self.run_id,
            "snapshot_rows": self.snapshot_rows,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "row_counts": {name: len(df) for name, df in self.results.items()},
            "baselines": {name: b.model_dump() for name, b in self.baselines.items()},
            "errors": dict(self.errors),
        }


def config_from_settings(settings: Settings) -> DetectorConfig:
    return DetectorConfig(
        k=settings.SIGMA_K,
        nocturnal_hours=tuple(settings.NOCTURNAL_HOURS),
        frequent_counterparty_cutoff=settings.FREQUENT_COUNTERPARTY_CUTOFF,
        min_fraud_flags=settings.MIN_FRAUD_FLAGS,
        high_suspicion_min_count=settings.HIGH_SUSPICION_MIN_COUNT,
        high_suspicion_min_amount=settings.HIGH_SUSPICION_MIN_AMOUNT,
        moderate_suspicion_min_count=settings.MODERATE_SUSPICION_MIN_COUNT,
        moderate_suspicion_min_amount=settings.MODERATE_SUSPICION_MIN_AMOUNT,
    )


def run_scoring(
    snapshot: TransactionSnapshot,
    config: Optional[DetectorConfig] = None,
    result_sets: Optional[Iterable[str]] = None,
    max_workers: int = 4
) -> ScoringReport:
    """
    Build the requested result sets (default: all) from one snapshot.

    Args:
        snapshot: Immutable transaction snapshot
        config: Detector thresholds (defaults reproduce the fixed rules)
        result_sets: Subset of RESULT_SET_BUILDERS names
        max_workers: Parallel builder tasks

    Returns:
        ScoringReport; result sets are ordered as in RESULT_SET_BUILDERS.
    """
    config = config or DetectorConfig()
    names = list(RESULT_SET_BUILDERS) if result_sets is None else list(result_sets)
    unknown = set(names) - set(RESULT_SET_BUILDERS)
    if unknown:
        raise ValueError(f"Unknown result sets: {sorted(unknown)}")

    report = ScoringReport(
        run_id=uuid.uuid4().hex[:12],
        snapshot_rows=len(snapshot),
        started_at=datetime.now()
    )
    logger.info(f"Scoring run {report.run_id}: {len(names)} result sets over {len(snapshot):,} rows")

    outputs = {}
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        futures = {
            pool.submit(RESULT_SET_BUILDERS[name], snapshot, config): name
            for name in names
        }
        for future in as_completed(futures):
            name = futures[future]
            try:
                outputs[name] = future.result()
            except FraudEngineError as e:
                report.errors[name] = str(e)
                logger.error(f"❌ {name} failed: {e}")

    for name in names:
        if name not in outputs:
            continue
        output = outputs[name]
        if isinstance(output, DetectorResult):
            report.results[name] = output.flagged()
            if output.baseline is not None:
                report.baselines[name] = output.baseline
        else:
            report.results[name] = output

    report.finished_at = datetime.now()
    logger.info(
        f"✅ Scoring run {report.run_id} finished: "
        f"{len(report.results)} result sets, {len(report.errors)} failed"
    )
    return report
